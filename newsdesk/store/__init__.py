"""
Newsdesk Store
==============

Access to the articles and newsletters tables.

Usage:
    from newsdesk.store import get_store

    store = get_store()          # built from app config (STORE_BACKEND)
    articles = store.get_articles()
"""

from flask import current_app, has_app_context

from ..core.config import get_config_value
from ..core.exceptions import ValidationError
from .base import ArticleStore, ENTITY_KINDS
from .models import (
    Article, Newsletter, NewsletterMeta, COUNTRIES, CATEGORIES,
    normalize_article, normalize_newsletter, canonical_country
)
from .rest_store import RestStore
from .sqlite_store import SqliteStore


def build_store(backend=None):
    """Create a store from configuration"""
    backend = (backend or get_config_value('STORE_BACKEND', 'sqlite')).lower()
    articles_table = get_config_value('ARTICLES_TABLE', 'apac_article')
    newsletters_table = get_config_value('NEWSLETTERS_TABLE', 'newsletter')

    if backend == 'sqlite':
        return SqliteStore(get_config_value('NEWS_DB'), articles_table, newsletters_table)
    if backend == 'rest':
        return RestStore(
            get_config_value('STORE_URL'),
            get_config_value('STORE_KEY'),
            articles_table=articles_table,
            newsletters_table=newsletters_table,
            timeout=float(get_config_value('STORE_TIMEOUT', 10)),
        )
    raise ValidationError(f"Unknown STORE_BACKEND: {backend}")


def get_store():
    """The store attached to the running app (created on first use)"""
    if not has_app_context():
        return build_store()
    store = current_app.extensions.get('newsdesk_store')
    if store is None:
        store = current_app.extensions['newsdesk_store'] = build_store()
    return store


__all__ = [
    'ArticleStore', 'ENTITY_KINDS', 'Article', 'Newsletter', 'NewsletterMeta',
    'COUNTRIES', 'CATEGORIES', 'normalize_article', 'normalize_newsletter',
    'canonical_country', 'RestStore', 'SqliteStore', 'build_store', 'get_store',
]
