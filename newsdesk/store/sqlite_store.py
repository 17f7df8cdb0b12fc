"""
SQLite Store
============

Local implementation of the store interface. Both tables live in NEWS_DB.
Unlike the hosted store it supports real transactions, so publishing a
newsletter is all-or-nothing here.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager

from ..core.database import Database
from ..core.exceptions import FetchError, StoreWriteError, NotFoundError, ValidationError
from .base import ArticleStore, ENTITY_KINDS
from .models import normalize_article, normalize_newsletter, utc_now_iso

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = [
    'title', 'company', 'country', 'category', 'summary', 'source_url',
    'created_at', 'published_at', 'views',
    'selected_for_newsletter', 'published_in_newsletter', 'newsletter_id',
]


class SqliteStore(ArticleStore):

    supports_transactions = True

    def __init__(self, db_path, articles_table='apac_article', newsletters_table='newsletter'):
        self.db_path = db_path
        self.articles_table = articles_table
        self.newsletters_table = newsletters_table
        self._local = threading.local()
        self.init_db()

    # ===== Schema =====

    def init_db(self):
        """Create tables and indexes if they don't exist"""
        Database.init_schema(self.db_path, [
            f'''
                CREATE TABLE IF NOT EXISTS {self.articles_table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT,
                    company TEXT,
                    country TEXT,
                    category TEXT,
                    summary TEXT,
                    source_url TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    published_at TIMESTAMP,
                    views INTEGER DEFAULT 0,
                    selected_for_newsletter BOOLEAN DEFAULT 0,
                    published_in_newsletter BOOLEAN DEFAULT 0,
                    newsletter_id INTEGER
                )
            ''',
            f'''
                CREATE TABLE IF NOT EXISTS {self.newsletters_table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    publish_date TIMESTAMP NOT NULL,
                    banner_image_url TEXT,
                    views INTEGER DEFAULT 0,
                    unique_readers INTEGER DEFAULT 0,
                    articles TEXT NOT NULL DEFAULT '[]'
                )
            ''',
            f'CREATE INDEX IF NOT EXISTS idx_{self.articles_table}_selected '
            f'ON {self.articles_table}(selected_for_newsletter)',
            f'CREATE INDEX IF NOT EXISTS idx_{self.articles_table}_newsletter '
            f'ON {self.articles_table}(newsletter_id)',
        ])

    # ===== Connection handling =====

    @contextmanager
    def _connection(self):
        """Reuse the open transaction's connection, or open a short-lived one"""
        conn = getattr(self._local, 'conn', None)
        if conn is not None:
            yield conn
            return
        conn = Database.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        if getattr(self._local, 'conn', None) is not None:
            # Nested: the outermost transaction commits
            yield self
            return
        conn = Database.connect(self.db_path)
        self._local.conn = conn
        try:
            yield self
            conn.commit()
        except Exception:
            conn.rollback()
            logger.warning("Rolled back store transaction")
            raise
        finally:
            self._local.conn = None
            conn.close()

    def _read(self, query, params=()):
        try:
            with self._connection() as conn:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Store read failed: {e}")
            raise FetchError(f"Failed to fetch from store: {e}") from e

    # ===== Articles =====

    def insert_article(self, **fields):
        """Insert a collected article (ingestion happens outside Newsdesk; used for seeding)"""
        unknown = set(fields) - set(ARTICLE_COLUMNS)
        if unknown:
            raise ValidationError(f"Unknown article fields: {', '.join(sorted(unknown))}")
        columns = [c for c in ARTICLE_COLUMNS if c in fields]
        placeholders = ', '.join('?' for _ in columns)
        try:
            with self._connection() as conn:
                if columns:
                    cursor = conn.execute(
                        f"INSERT INTO {self.articles_table} ({', '.join(columns)}) VALUES ({placeholders})",
                        [fields[c] for c in columns]
                    )
                else:
                    cursor = conn.execute(f"INSERT INTO {self.articles_table} DEFAULT VALUES")
                article_id = cursor.lastrowid
                row = conn.execute(
                    f"SELECT * FROM {self.articles_table} WHERE id = ?", (article_id,)
                ).fetchone()
                return normalize_article(row)
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to insert article: {e}") from e

    def get_articles(self):
        rows = self._read(f'''
            SELECT * FROM {self.articles_table}
            WHERE title IS NOT NULL AND TRIM(title) != ''
            ORDER BY selected_for_newsletter DESC, id ASC
        ''')
        return [normalize_article(row) for row in rows]

    def get_published_articles(self):
        rows = self._read(f'''
            SELECT * FROM {self.articles_table}
            WHERE published_in_newsletter = 1
            ORDER BY selected_for_newsletter DESC, id ASC
        ''')
        return [normalize_article(row) for row in rows]

    def get_articles_by_ids(self, ids):
        ids = list(ids)
        if not ids:
            return []
        placeholders = ', '.join('?' for _ in ids)
        rows = self._read(
            f"SELECT * FROM {self.articles_table} WHERE id IN ({placeholders}) ORDER BY id ASC",
            ids
        )
        return [normalize_article(row) for row in rows]

    def update_article_flags(self, article_id, selected_for_newsletter=None,
                             published_in_newsletter=None, newsletter_id=None):
        updates = {}
        if selected_for_newsletter is not None:
            updates['selected_for_newsletter'] = int(bool(selected_for_newsletter))
        if published_in_newsletter is not None:
            updates['published_in_newsletter'] = int(bool(published_in_newsletter))
            if published_in_newsletter:
                updates['published_at'] = utc_now_iso()
        if newsletter_id is not None:
            updates['newsletter_id'] = newsletter_id

        try:
            with self._connection() as conn:
                if updates:
                    set_clause = ', '.join(f"{column} = ?" for column in updates)
                    conn.execute(
                        f"UPDATE {self.articles_table} SET {set_clause} WHERE id = ?",
                        list(updates.values()) + [article_id]
                    )
                row = conn.execute(
                    f"SELECT * FROM {self.articles_table} WHERE id = ?", (article_id,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Store write failed for article {article_id}: {e}")
            raise StoreWriteError(f"Failed to update article {article_id}: {e}") from e

        if row is None:
            raise NotFoundError(f"Article {article_id} not found", {'article_id': article_id})
        return normalize_article(row)

    # ===== Newsletters =====

    def get_newsletters(self):
        rows = self._read(
            f"SELECT * FROM {self.newsletters_table} ORDER BY publish_date DESC, id DESC"
        )
        return [normalize_newsletter(row) for row in rows]

    def get_newsletter(self, newsletter_id):
        rows = self._read(
            f"SELECT * FROM {self.newsletters_table} WHERE id = ?", (newsletter_id,)
        )
        return normalize_newsletter(rows[0]) if rows else None

    def create_newsletter(self, meta, article_ids):
        try:
            with self._connection() as conn:
                cursor = conn.execute(f'''
                    INSERT INTO {self.newsletters_table}
                        (title, description, publish_date, banner_image_url, views, unique_readers, articles)
                    VALUES (?, ?, ?, ?, 0, 0, ?)
                ''', (
                    meta.title,
                    meta.description,
                    meta.publish_date or utc_now_iso(),
                    meta.banner_image_url,
                    json.dumps(list(article_ids)),
                ))
                row = conn.execute(
                    f"SELECT * FROM {self.newsletters_table} WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()
                return normalize_newsletter(row)
        except sqlite3.Error as e:
            logger.error(f"Store write failed creating newsletter: {e}")
            raise StoreWriteError(f"Failed to create newsletter: {e}") from e

    # ===== Counters =====

    def increment_views(self, kind, entity_id):
        if kind not in ENTITY_KINDS:
            raise ValidationError(f"Unknown entity kind: {kind}")
        table = self.articles_table if kind == 'article' else self.newsletters_table
        self._increment(table, 'views', entity_id)

    def increment_unique_readers(self, newsletter_id):
        self._increment(self.newsletters_table, 'unique_readers', newsletter_id)

    def _increment(self, table, column, entity_id):
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    f"UPDATE {table} SET {column} = COALESCE({column}, 0) + 1 WHERE id = ?",
                    (entity_id,)
                )
                updated = cursor.rowcount
        except sqlite3.Error as e:
            raise StoreWriteError(f"Failed to update {column} on {table} {entity_id}: {e}") from e
        if not updated:
            raise NotFoundError(f"{table} {entity_id} not found", {'id': entity_id})
