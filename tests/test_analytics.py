"""
Analytics Aggregator tests. All functions are pure, so no store is involved.
"""

import pytest

from newsdesk.core.exceptions import ValidationError
from newsdesk.modules.analytics import (
    count_by_category, count_by_country, newsletter_performance, overview,
    publication_distribution, sort_articles, sort_newsletters, views_by_dimension
)
from newsdesk.store import normalize_article, normalize_newsletter


def _articles(*rows):
    return [normalize_article(dict(row, id=i)) for i, row in enumerate(rows, start=1)]


def test_count_by_category_excludes_missing():
    articles = _articles(
        {'category': 'Payments'},
        {'category': 'Core Banking'},
        {'category': 'Payments'},
        {'category': None},
    )
    assert count_by_category(articles) == [
        {'name': 'Payments', 'count': 2},
        {'name': 'Core Banking', 'count': 1},
    ]


def test_count_by_country_ties_keep_first_seen_order():
    articles = _articles({'country': 'Japan'}, {'country': 'hongkong'}, {'country': ''})
    assert count_by_country(articles) == [
        {'name': 'Japan', 'count': 1},
        {'name': 'Hong Kong', 'count': 1},
    ]


def test_distribution_sums_to_article_count():
    articles = _articles(
        {'published_in_newsletter': True, 'newsletter_id': 1},
        {'selected_for_newsletter': True},
        {'selected_for_newsletter': True},
        {},
        {},
    )
    distribution = publication_distribution(articles)

    assert distribution == {'published': 1, 'selected': 2, 'not_selected': 2}
    assert sum(distribution.values()) == len(articles)


def test_distribution_of_nothing():
    assert publication_distribution([]) == {'published': 0, 'selected': 0, 'not_selected': 0}


def test_views_by_dimension():
    articles = _articles(
        {'category': 'Payments', 'views': 5},
        {'category': 'AML/KYC', 'views': 20},
        {'category': 'Payments', 'views': 10},
        {'category': None, 'views': 100},
    )
    assert views_by_dimension(articles, 'category') == [
        {'name': 'AML/KYC', 'views': 20},
        {'name': 'Payments', 'views': 15},
    ]


def test_views_by_unknown_dimension():
    with pytest.raises(ValidationError):
        views_by_dimension([], 'company')


def test_overview():
    articles = _articles(
        {'published_in_newsletter': True, 'newsletter_id': 1},
        {'selected_for_newsletter': True},
        {},
    )
    newsletters = [normalize_newsletter({'id': 1, 'articles': [1]})]

    assert overview(articles, newsletters) == {
        'total_articles': 3,
        'selected_articles': 2,
        'published_articles': 1,
        'total_newsletters': 1,
        'published_percentage': 33,
    }
    assert overview([], [])['published_percentage'] == 0


def test_newsletter_performance_top_by_views():
    newsletters = [
        normalize_newsletter({'id': i, 'title': f'N{i}', 'views': views, 'uniqueReaders': views // 2})
        for i, views in enumerate([3, 50, 7, 0, 12, 9], start=1)
    ]
    top = newsletter_performance(newsletters)

    assert [n['id'] for n in top] == [2, 5, 6, 3, 1]
    assert top[0]['unique_readers'] == 25
    assert newsletter_performance(newsletters, limit=1)[0]['title'] == 'N2'


def test_sort_articles_nulls_sort_as_zero():
    articles = _articles({'views': 4}, {'views': None}, {'views': 9})
    assert [a.id for a in sort_articles(articles, sort_by='views', order='asc')] == [2, 1, 3]
    assert [a.id for a in sort_articles(articles, sort_by='views', order='desc')] == [3, 1, 2]


def test_sort_articles_status_filter():
    articles = _articles(
        {'published_in_newsletter': True, 'newsletter_id': 1},
        {'selected_for_newsletter': True},
        {},
    )
    assert [a.id for a in sort_articles(articles, status='published')] == [1]
    assert [a.id for a in sort_articles(articles, status='selected')] == [2]
    assert [a.id for a in sort_articles(articles, status='not_selected')] == [3]


@pytest.mark.parametrize('kwargs', [
    {'status': 'draft'},
    {'sort_by': 'password'},
    {'order': 'sideways'},
])
def test_sort_articles_rejects_unknown_options(kwargs):
    with pytest.raises(ValidationError):
        sort_articles([], **kwargs)


def test_sort_newsletters_by_title():
    newsletters = [
        normalize_newsletter({'id': 1, 'title': 'beta'}),
        normalize_newsletter({'id': 2, 'title': 'Alpha'}),
        normalize_newsletter({'id': 3}),
    ]
    assert [n.id for n in sort_newsletters(newsletters, sort_by='title', order='asc')] == [3, 2, 1]
