"""
Shared fixtures for the Newsdesk test suite.

Run with: pytest tests/ -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile
from dataclasses import replace

import pytest

from newsdesk import create_app
from newsdesk.core.config import Config
from newsdesk.core.exceptions import FetchError, StoreWriteError, NotFoundError
from newsdesk.modules.auth import LocalAuth
from newsdesk.store import ArticleStore, SqliteStore, normalize_article, normalize_newsletter


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class MemoryStore(ArticleStore):
    """
    Dict-backed store without transactions, like the hosted store.

    fail_reads / fail_writes make every read / write raise; fail_update_ids
    makes update_article_flags fail only for those ids.
    """

    def __init__(self, articles=(), newsletters=()):
        self.articles = {}
        self.newsletters = {}
        for row in articles:
            article = normalize_article(row)
            self.articles[article.id] = article
        for row in newsletters:
            newsletter = normalize_newsletter(row)
            self.newsletters[newsletter.id] = newsletter
        self.fail_reads = False
        self.fail_writes = False
        self.fail_update_ids = set()
        self.writes = []

    def _check_read(self):
        if self.fail_reads:
            raise FetchError("store unavailable")

    def _check_write(self):
        if self.fail_writes:
            raise StoreWriteError("store unavailable")

    def _find(self, collection, entity_id):
        for key, value in collection.items():
            if str(key) == str(entity_id):
                return key, value
        return None, None

    def get_articles(self):
        self._check_read()
        rows = [a for a in self.articles.values() if a.title]
        return sorted(rows, key=lambda a: (not a.selected_for_newsletter, a.id))

    def get_published_articles(self):
        self._check_read()
        return [a for a in self.articles.values() if a.published_in_newsletter]

    def get_articles_by_ids(self, ids):
        self._check_read()
        wanted = {str(i) for i in ids}
        return [a for a in self.articles.values() if str(a.id) in wanted]

    def update_article_flags(self, article_id, selected_for_newsletter=None,
                             published_in_newsletter=None, newsletter_id=None):
        self._check_write()
        key, article = self._find(self.articles, article_id)
        if article is None:
            raise NotFoundError(f"Article {article_id} not found")
        if str(article_id) in {str(i) for i in self.fail_update_ids}:
            raise StoreWriteError(f"write to article {article_id} failed")
        flags = {}
        if selected_for_newsletter is not None:
            flags['selected_for_newsletter'] = selected_for_newsletter
        if published_in_newsletter is not None:
            flags['published_in_newsletter'] = published_in_newsletter
        if newsletter_id is not None:
            flags['newsletter_id'] = newsletter_id
        self.articles[key] = article.with_flags(**flags)
        self.writes.append(('article', key, flags))
        return self.articles[key]

    def get_newsletters(self):
        self._check_read()
        return sorted(self.newsletters.values(), key=lambda n: n.publish_date or '', reverse=True)

    def get_newsletter(self, newsletter_id):
        self._check_read()
        return self._find(self.newsletters, newsletter_id)[1]

    def create_newsletter(self, meta, article_ids):
        self._check_write()
        newsletter_id = len(self.newsletters) + 1
        newsletter = normalize_newsletter({
            'id': newsletter_id,
            'title': meta.title,
            'description': meta.description,
            'publishDate': meta.publish_date,
            'bannerImageUrl': meta.banner_image_url,
            'articles': list(article_ids),
        })
        self.newsletters[newsletter_id] = newsletter
        self.writes.append(('newsletter', newsletter_id, {}))
        return newsletter

    def increment_views(self, kind, entity_id):
        self._check_write()
        collection = self.articles if kind == 'article' else self.newsletters
        key, record = self._find(collection, entity_id)
        if record is None:
            raise NotFoundError(f"{kind} {entity_id} not found")
        collection[key] = replace(record, views=record.views + 1)

    def increment_unique_readers(self, newsletter_id):
        self._check_write()
        key, record = self._find(self.newsletters, newsletter_id)
        if record is None:
            raise NotFoundError(f"newsletter {newsletter_id} not found")
        self.newsletters[key] = replace(record, unique_readers=record.unique_readers + 1)


def article_row(article_id, **overrides):
    row = {
        'id': article_id,
        'title': f"Article {article_id}",
        'company': 'DBS',
        'country': 'Singapore',
        'category': 'Payments',
        'summary': 'Regional bank news',
        'views': 0,
        'selected_for_newsletter': False,
        'published_in_newsletter': False,
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_log_db(tmp_db_dir, monkeypatch):
    """Log rows written outside an app context go to the temp dir too."""
    monkeypatch.setattr(Config, 'ANALYTICS_DB', os.path.join(tmp_db_dir, "analytics.db"))


@pytest.fixture
def app(tmp_db_dir):
    """Fully initialised Flask app with every Newsdesk module registered."""
    return create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "DB_DIR": tmp_db_dir,
        "NEWS_DB": os.path.join(tmp_db_dir, "news.db"),
        "ANALYTICS_DB": os.path.join(tmp_db_dir, "analytics.db"),
        "STORE_BACKEND": "sqlite",
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sqlite_store(app):
    """The sqlite store the app uses, ready for seeding."""
    store = SqliteStore(app.config["NEWS_DB"])
    app.extensions['newsdesk_store'] = store
    return store


@pytest.fixture
def memory_store():
    return MemoryStore([article_row(1), article_row(2), article_row(3)])


@pytest.fixture
def analyst_client(app, client):
    """Test client signed in as an analyst."""
    auth = LocalAuth(app.config["NEWS_DB"])
    auth.create_analyst("analyst@example.com", "correct-horse")
    response = client.post("/api/auth/login", json={
        "email": "analyst@example.com",
        "password": "correct-horse",
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def make_article_row():
    return article_row


@pytest.fixture
def memory_store_factory():
    return MemoryStore
