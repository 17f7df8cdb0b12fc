"""
Selection Engine
================

Filterable view over all articles plus the selection toggle. The analyst's
working set is an explicit, immutable SelectionState: every operation hands
back a new state instead of mutating shared UI state.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple

from ...core.exceptions import FetchError, NotFoundError, InvalidStateError, ValidationError
from ...core.logging_service import db_log
from ...store.models import COUNTRIES, CATEGORIES, canonical_country

logger = logging.getLogger(__name__)

TABS = ('all', 'selected', 'featured')

# "Featured" keeps every n-th article of the current order, starting at the first
FEATURED_STRIDE = 3


@dataclass(frozen=True)
class ArticleFilter:
    country: str = 'all'
    category: str = 'all'
    search: str = ''
    tab: str = 'all'

    @classmethod
    def from_args(cls, args):
        """Build a filter from query-string style arguments, rejecting unknown values"""
        country = (args.get('country') or 'all').strip()
        category = (args.get('category') or 'all').strip()
        tab = (args.get('tab') or 'all').strip().lower()

        if country.lower() != 'all':
            country = canonical_country(country)
            if country not in COUNTRIES:
                raise ValidationError(f"Unknown country: {args.get('country')}")
        else:
            country = 'all'
        if category.lower() == 'all':
            category = 'all'
        elif category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        if tab not in TABS:
            raise ValidationError(f"Unknown tab: {tab}")

        return cls(country=country, category=category, search=(args.get('search') or '').strip(), tab=tab)


@dataclass(frozen=True)
class SelectionState:
    """What the analyst dashboard shows: the loaded articles and an optional error banner"""

    articles: Tuple[Any, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def pending(self):
        """Selected but unpublished articles: the candidates for the next newsletter"""
        return [a for a in self.articles if a.is_pending]

    @property
    def selected_count(self):
        return sum(1 for a in self.articles if a.selected_for_newsletter)

    def find(self, article_id):
        for article in self.articles:
            if str(article.id) == str(article_id):
                return article
        return None

    def replace_article(self, updated):
        articles = tuple(updated if str(a.id) == str(updated.id) else a for a in self.articles)
        return replace(self, articles=articles, error=None)


def _matches_text(article, needle):
    for value in (article.title, article.company, article.summary):
        if value and needle in value.lower():
            return True
    return False


def list_articles(articles, article_filter=None):
    """
    Articles matching every active filter.

    Order of application: country, category, tab, free-text search. The
    featured tab samples the list as it stands after country/category.
    """
    article_filter = article_filter or ArticleFilter()
    result = list(articles)

    if article_filter.country != 'all':
        result = [a for a in result if a.country == article_filter.country]

    if article_filter.category != 'all':
        result = [a for a in result if a.category == article_filter.category]

    if article_filter.tab == 'selected':
        result = [a for a in result if a.selected_for_newsletter]
    elif article_filter.tab == 'featured':
        result = result[::FEATURED_STRIDE]

    if article_filter.search:
        needle = article_filter.search.lower()
        result = [a for a in result if _matches_text(a, needle)]

    return result


class SelectionEngine:

    def __init__(self, store):
        self.store = store

    def load(self):
        """Load all articles; a failed read yields an empty state carrying the error"""
        try:
            return SelectionState(articles=tuple(self.store.get_articles()))
        except FetchError as e:
            logger.error(f"Error fetching articles: {e}")
            db_log('error', 'selection', 'Failed to load articles', {'error': str(e)})
            return SelectionState(error="Failed to load articles. Please try again.")

    def list_articles(self, state, article_filter=None):
        return list_articles(state.articles, article_filter)

    def toggle_selection(self, state, article_id):
        """
        Flip selected_for_newsletter on one article.

        The store write happens first; the returned state only reflects it once
        the store has acknowledged. On any error the caller's state is untouched.

        Returns:
            (updated Article, new SelectionState)
        """
        found = self.store.get_articles_by_ids([article_id])
        if not found:
            raise NotFoundError(f"Article {article_id} not found", {'article_id': article_id})
        current = found[0]

        if current.published_in_newsletter:
            raise InvalidStateError(
                f"Article {article_id} is already published and cannot be deselected",
                {'article_id': article_id, 'newsletter_id': current.newsletter_id}
            )

        updated = self.store.update_article_flags(
            current.id, selected_for_newsletter=not current.selected_for_newsletter
        )

        if state.find(updated.id) is not None:
            new_state = state.replace_article(updated)
        else:
            new_state = replace(state, articles=state.articles + (updated,), error=None)

        logger.info(f"Article {updated.id} selected={updated.selected_for_newsletter}")
        return updated, new_state

    def selected_and_published(self):
        """The selected-news page: pending selection and already-published articles"""
        state = self.load()
        if state.error:
            return {'selected': [], 'published': [], 'error': state.error}
        try:
            published = self.store.get_published_articles()
        except FetchError as e:
            logger.error(f"Error fetching published articles: {e}")
            return {'selected': state.pending, 'published': [], 'error': "Failed to load published articles."}
        return {'selected': state.pending, 'published': published, 'error': None}
