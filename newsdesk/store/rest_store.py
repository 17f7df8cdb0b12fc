"""
REST Store
==========

Store implementation for the hosted database, spoken to over its
PostgREST-style HTTP interface (``/rest/v1/<table>``).

The hosted interface offers no multi-statement transaction, so
``transaction()`` is the base no-op and a publish that fails half-way
leaves partial state for the caller to report.
"""

import json
import logging

import requests

from ..core.exceptions import FetchError, StoreWriteError, NotFoundError, ValidationError
from .base import ArticleStore, ENTITY_KINDS
from .models import normalize_article, normalize_newsletter, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class RestStore(ArticleStore):

    def __init__(self, base_url, api_key, articles_table='apac_article',
                 newsletters_table='newsletter', timeout=DEFAULT_TIMEOUT, session=None):
        if not base_url or not api_key:
            raise ValidationError("STORE_URL and STORE_KEY are required for the rest store")
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.articles_table = articles_table
        self.newsletters_table = newsletters_table
        self.timeout = timeout
        self.http = session or requests.Session()
        self.access_token = None

    def set_access_token(self, token):
        """Act on behalf of a signed-in user instead of the anonymous key"""
        self.access_token = token

    def _headers(self, prefer=None):
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table):
        return f"{self.base_url}/rest/v1/{table}"

    def _get(self, table, params):
        try:
            resp = self.http.get(self._url(table), params=params, headers=self._headers(), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.Timeout as e:
            logger.error(f"Store read timed out on {table}: {e}")
            raise FetchError(f"Store did not answer within {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Store read failed on {table}: {e}")
            raise FetchError(f"Failed to fetch {table}: {e}") from e

    def _write(self, method, table, params=None, payload=None):
        try:
            resp = self.http.request(
                method, self._url(table), params=params, data=json.dumps(payload),
                headers=self._headers(prefer="return=representation"), timeout=self.timeout
            )
            resp.raise_for_status()
            return resp.json() if resp.content else []
        except requests.Timeout as e:
            logger.error(f"Store write timed out on {table}: {e}")
            raise StoreWriteError(f"Store did not acknowledge within {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Store write failed on {table}: {e}")
            raise StoreWriteError(f"Failed to write {table}: {e}") from e

    @staticmethod
    def _in_filter(ids):
        return "in.(" + ",".join(str(i) for i in ids) + ")"

    # ===== Articles =====

    def get_articles(self):
        rows = self._get(self.articles_table, [
            ('select', '*'),
            ('title', 'not.is.null'),
            ('title', 'neq.'),
            ('order', 'selected_for_newsletter.desc,id.asc'),
        ])
        return [normalize_article(row) for row in rows]

    def get_published_articles(self):
        rows = self._get(self.articles_table, [
            ('select', '*'),
            ('published_in_newsletter', 'eq.true'),
            ('order', 'selected_for_newsletter.desc,id.asc'),
        ])
        return [normalize_article(row) for row in rows]

    def get_articles_by_ids(self, ids):
        ids = list(ids)
        if not ids:
            return []
        rows = self._get(self.articles_table, [('select', '*'), ('id', self._in_filter(ids))])
        return [normalize_article(row) for row in rows]

    def update_article_flags(self, article_id, selected_for_newsletter=None,
                             published_in_newsletter=None, newsletter_id=None):
        payload = {}
        if selected_for_newsletter is not None:
            payload['selected_for_newsletter'] = bool(selected_for_newsletter)
        if published_in_newsletter is not None:
            payload['published_in_newsletter'] = bool(published_in_newsletter)
            if published_in_newsletter:
                payload['published_at'] = utc_now_iso()
        if newsletter_id is not None:
            payload['newsletter_id'] = newsletter_id

        if not payload:
            found = self.get_articles_by_ids([article_id])
            if not found:
                raise NotFoundError(f"Article {article_id} not found", {'article_id': article_id})
            return found[0]

        rows = self._write('PATCH', self.articles_table, params={'id': f'eq.{article_id}'}, payload=payload)
        if not rows:
            raise NotFoundError(f"Article {article_id} not found", {'article_id': article_id})
        return normalize_article(rows[0])

    # ===== Newsletters =====

    def get_newsletters(self):
        rows = self._get(self.newsletters_table, [('select', '*'), ('order', 'publishDate.desc')])
        return [normalize_newsletter(row) for row in rows]

    def get_newsletter(self, newsletter_id):
        rows = self._get(self.newsletters_table, [('select', '*'), ('id', f'eq.{newsletter_id}')])
        return normalize_newsletter(rows[0]) if rows else None

    def create_newsletter(self, meta, article_ids):
        payload = {
            'title': meta.title,
            'description': meta.description,
            'publishDate': meta.publish_date or utc_now_iso(),
            'views': 0,
            'uniqueReaders': 0,
            'articles': list(article_ids),
        }
        if meta.banner_image_url:
            payload['bannerImageUrl'] = meta.banner_image_url
        rows = self._write('POST', self.newsletters_table, payload=[payload])
        if not rows:
            raise StoreWriteError("Store did not return the created newsletter")
        return normalize_newsletter(rows[0])

    # ===== Counters =====

    def increment_views(self, kind, entity_id):
        if kind not in ENTITY_KINDS:
            raise ValidationError(f"Unknown entity kind: {kind}")
        table = self.articles_table if kind == 'article' else self.newsletters_table
        self._increment(table, 'views', entity_id)

    def increment_unique_readers(self, newsletter_id):
        self._increment(self.newsletters_table, 'uniqueReaders', newsletter_id)

    def _increment(self, table, column, entity_id):
        # Read-then-write; the REST interface has no atomic increment
        rows = self._get(table, [('select', f'id,{column}'), ('id', f'eq.{entity_id}')])
        if not rows:
            raise NotFoundError(f"{table} {entity_id} not found", {'id': entity_id})
        current = rows[0].get(column) or 0
        self._write('PATCH', table, params={'id': f'eq.{entity_id}'}, payload={column: current + 1})
