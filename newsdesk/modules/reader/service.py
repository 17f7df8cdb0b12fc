"""
Reader Service
==============

Public, read-only view of one published newsletter. Opening a newsletter
bumps its counters; counter failures never stop the page from rendering.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...core.exceptions import ValidationError, NotFoundError, StoreError, FetchError
from ...core.logging_service import db_log
from ...store.models import Article, Newsletter

logger = logging.getLogger(__name__)

OTHER_COUNTRY = 'Other'


@dataclass(frozen=True)
class ReaderView:
    newsletter: Newsletter
    articles: List[Article] = field(default_factory=list)
    by_country: Dict[str, List[Article]] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self):
        return {
            'newsletter': self.newsletter.to_dict(),
            'articles': [a.to_dict() for a in self.articles],
            'by_country': {
                country: [a.to_dict() for a in articles]
                for country, articles in self.by_country.items()
            },
            'error': self.error,
        }


def group_by_country(articles):
    """Group articles by country, keeping first-seen order; no country goes under 'Other'"""
    groups = {}
    for article in articles:
        groups.setdefault(article.country or OTHER_COUNTRY, []).append(article)
    return groups


class ReaderService:

    def __init__(self, store):
        self.store = store

    def open_newsletter(self, newsletter_id, first_visit=True):
        """
        Load a newsletter with its articles and record the visit.

        Args:
            newsletter_id: id from the ?id= query parameter
            first_visit: also count a unique reader

        Raises:
            ValidationError: no id given
            NotFoundError: no such newsletter
            FetchError: the newsletter itself could not be read
        """
        if newsletter_id is None or str(newsletter_id).strip() == '':
            raise ValidationError("Newsletter id is required")

        newsletter = self.store.get_newsletter(newsletter_id)
        if newsletter is None:
            raise NotFoundError(f"Newsletter {newsletter_id} not found", {'newsletter_id': newsletter_id})

        self._record_visit(newsletter, first_visit)

        try:
            articles = self._ordered(self.store.get_articles_by_ids(newsletter.articles), newsletter.articles)
        except FetchError as e:
            logger.error(f"Error fetching articles for newsletter {newsletter.id}: {e}")
            db_log('error', 'reader', 'Failed to load newsletter articles', {
                'newsletter_id': newsletter.id, 'error': str(e)
            })
            return ReaderView(newsletter=newsletter, error="Failed to load articles. Please try again.")

        return ReaderView(newsletter=newsletter, articles=articles, by_country=group_by_country(articles))

    def record_article_view(self, article_id):
        """Count a click through to an article; returns False when it could not be recorded"""
        try:
            self.store.increment_views('article', article_id)
            return True
        except (StoreError, NotFoundError) as e:
            logger.warning(f"Could not record view for article {article_id}: {e}")
            db_log('warning', 'reader', 'Failed to record article view', {
                'article_id': article_id, 'error': str(e)
            })
            return False

    def _record_visit(self, newsletter, first_visit):
        try:
            self.store.increment_views('newsletter', newsletter.id)
            if first_visit:
                self.store.increment_unique_readers(newsletter.id)
        except (StoreError, NotFoundError) as e:
            logger.warning(f"Could not record view for newsletter {newsletter.id}: {e}")
            db_log('warning', 'reader', 'Failed to record newsletter view', {
                'newsletter_id': newsletter.id, 'error': str(e)
            })

    @staticmethod
    def _ordered(articles, ids):
        # Keep the order the newsletter lists its articles in
        position = {str(article_id): index for index, article_id in enumerate(ids)}
        return sorted(articles, key=lambda a: position.get(str(a.id), len(position)))
