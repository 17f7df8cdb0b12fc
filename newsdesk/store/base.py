"""
Store interface.

The workflow engines only talk to the backing database through this
contract, so the local sqlite store and the hosted REST store are
interchangeable.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager

ENTITY_KINDS = ('article', 'newsletter')


class ArticleStore(ABC):
    """Articles and newsletters in one backing database."""

    # True when transaction() really rolls back on failure
    supports_transactions = False

    @abstractmethod
    def get_articles(self):
        """All articles with a non-empty title, selected ones first."""

    @abstractmethod
    def get_published_articles(self):
        """Articles already included in a newsletter."""

    @abstractmethod
    def get_articles_by_ids(self, ids):
        """Articles whose id is in ``ids``; unknown ids are simply absent."""

    @abstractmethod
    def update_article_flags(self, article_id, selected_for_newsletter=None,
                             published_in_newsletter=None, newsletter_id=None):
        """Write the given workflow flags and return the updated Article.

        Raises NotFoundError when the article does not exist.
        """

    @abstractmethod
    def get_newsletters(self):
        """All newsletters, newest publish date first."""

    @abstractmethod
    def get_newsletter(self, newsletter_id):
        """A single newsletter or None."""

    @abstractmethod
    def create_newsletter(self, meta, article_ids):
        """Insert a newsletter row (views and unique readers start at 0)."""

    @abstractmethod
    def increment_views(self, kind, entity_id):
        """Add one to the view counter of an article or newsletter."""

    @abstractmethod
    def increment_unique_readers(self, newsletter_id):
        """Add one to a newsletter's unique reader counter."""

    @contextmanager
    def transaction(self):
        """Group writes; stores without multi-statement transactions just run them in order."""
        yield self
