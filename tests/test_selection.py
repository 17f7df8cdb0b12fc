"""
Selection Engine tests: filters, the featured tab, and the toggle.
"""

import pytest
from werkzeug.datastructures import MultiDict

from newsdesk.core.exceptions import (
    InvalidStateError, NotFoundError, StoreWriteError, ValidationError
)
from newsdesk.modules.selection import ArticleFilter, SelectionEngine, SelectionState, list_articles
from newsdesk.store import normalize_article


def _articles(rows):
    return [normalize_article(r) for r in rows]


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def test_filter_from_args_defaults():
    f = ArticleFilter.from_args(MultiDict())
    assert f == ArticleFilter()


def test_filter_from_args_canonicalises_country():
    f = ArticleFilter.from_args(MultiDict({'country': 'hongkong', 'tab': 'Featured'}))
    assert f.country == 'Hong Kong'
    assert f.tab == 'featured'


@pytest.mark.parametrize('args', [
    {'tab': 'archived'},
    {'country': 'Atlantis'},
    {'category': 'Crypto'},
])
def test_filter_from_args_rejects_unknown_values(args):
    with pytest.raises(ValidationError):
        ArticleFilter.from_args(MultiDict(args))


def test_country_and_category_filters(make_article_row):
    articles = _articles([
        make_article_row(1, country='Japan', category='Payments'),
        make_article_row(2, country='Japan', category='AML/KYC'),
        make_article_row(3, country='hongkong', category='Payments'),
    ])

    assert [a.id for a in list_articles(articles, ArticleFilter(country='Japan'))] == [1, 2]
    assert [a.id for a in list_articles(articles, ArticleFilter(country='Hong Kong'))] == [3]
    assert [a.id for a in list_articles(articles, ArticleFilter(category='Payments'))] == [1, 3]
    assert [a.id for a in list_articles(articles, ArticleFilter(country='Japan', category='Payments'))] == [1]


def test_selected_tab(make_article_row):
    articles = _articles([
        make_article_row(1, selected_for_newsletter=True),
        make_article_row(2),
        make_article_row(3, published_in_newsletter=True, newsletter_id=1),
    ])
    assert [a.id for a in list_articles(articles, ArticleFilter(tab='selected'))] == [1, 3]


def test_featured_tab_takes_every_third_after_country_filter(make_article_row):
    rows = [make_article_row(i, country='Japan') for i in range(1, 8)]
    rows.insert(1, make_article_row(99, country='Australia'))
    articles = _articles(rows)

    featured = list_articles(articles, ArticleFilter(country='Japan', tab='featured'))
    assert [a.id for a in featured] == [1, 4, 7]


def test_search_runs_after_featured(make_article_row):
    articles = _articles([
        make_article_row(1, company='HSBC'),
        make_article_row(2, company='Maybank'),
        make_article_row(3, company='OCBC'),
        make_article_row(4, company='maybank berhad'),
    ])
    # Maybank rows sit at indices 1 and 3; featured keeps indices 0 and 3
    result = list_articles(articles, ArticleFilter(tab='featured', search='MAYBANK'))
    assert [a.id for a in result] == [4]


def test_search_matches_title_company_and_summary(make_article_row):
    articles = _articles([
        make_article_row(1, title='Core banking overhaul'),
        make_article_row(2, summary='A new CORE platform'),
        make_article_row(3),
    ])
    assert [a.id for a in list_articles(articles, ArticleFilter(search='core'))] == [1, 2]


# ---------------------------------------------------------------------------
# State and loading
# ---------------------------------------------------------------------------

def test_pending_excludes_published(make_article_row):
    state = SelectionState(articles=tuple(_articles([
        make_article_row(1, selected_for_newsletter=True),
        make_article_row(2, published_in_newsletter=True, newsletter_id=1),
        make_article_row(3),
    ])))
    assert [a.id for a in state.pending] == [1]
    assert state.selected_count == 2


def test_load_failure_gives_empty_state_with_error(memory_store):
    memory_store.fail_reads = True
    state = SelectionEngine(memory_store).load()

    assert state.articles == ()
    assert state.error == "Failed to load articles. Please try again."


# ---------------------------------------------------------------------------
# Toggle
# ---------------------------------------------------------------------------

def test_toggle_twice_returns_to_unselected(memory_store):
    engine = SelectionEngine(memory_store)
    state = engine.load()

    article, state = engine.toggle_selection(state, 1)
    assert article.selected_for_newsletter is True
    assert state.find(1).selected_for_newsletter is True

    article, state = engine.toggle_selection(state, 1)
    assert article.selected_for_newsletter is False
    assert state.find(1).selected_for_newsletter is False
    assert memory_store.articles[1].selected_for_newsletter is False

    assert state.find(2).selected_for_newsletter is False
    assert memory_store.articles[2].selected_for_newsletter is False


def test_failed_toggles_leave_state_unchanged(memory_store):
    engine = SelectionEngine(memory_store)
    state = engine.load()
    before = state

    memory_store.fail_writes = True
    for _ in range(2):
        with pytest.raises(StoreWriteError):
            engine.toggle_selection(state, 1)

    assert state == before
    assert state.find(1).selected_for_newsletter is False
    assert memory_store.articles[1].selected_for_newsletter is False


def test_toggle_published_article_is_rejected(memory_store_factory, make_article_row):
    store = memory_store_factory([make_article_row(1, published_in_newsletter=True, newsletter_id=5)])
    engine = SelectionEngine(store)

    with pytest.raises(InvalidStateError):
        engine.toggle_selection(engine.load(), 1)
    assert store.articles[1].selected_for_newsletter is True
    assert store.writes == []


def test_toggle_unknown_article(memory_store):
    engine = SelectionEngine(memory_store)
    with pytest.raises(NotFoundError):
        engine.toggle_selection(engine.load(), 404)


def test_toggle_on_sqlite_store(sqlite_store):
    first = sqlite_store.insert_article(title='A', country='Japan')
    second = sqlite_store.insert_article(title='B', country='Japan')
    engine = SelectionEngine(sqlite_store)

    article, state = engine.toggle_selection(engine.load(), str(first.id))

    assert article.id == first.id
    assert article.selected_for_newsletter is True
    # Selected articles come first in the store order
    assert [a.id for a in sqlite_store.get_articles()] == [first.id, second.id]
    assert [a.id for a in state.pending] == [first.id]


def test_selected_and_published(memory_store_factory, make_article_row):
    store = memory_store_factory([
        make_article_row(1, selected_for_newsletter=True),
        make_article_row(2, published_in_newsletter=True, newsletter_id=1),
        make_article_row(3),
    ])
    result = SelectionEngine(store).selected_and_published()

    assert [a.id for a in result['selected']] == [1]
    assert [a.id for a in result['published']] == [2]
    assert result['error'] is None
