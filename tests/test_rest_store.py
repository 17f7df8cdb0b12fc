"""
RestStore tests against a mocked requests session (no network).
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from newsdesk.core.exceptions import FetchError, NotFoundError, StoreWriteError, ValidationError
from newsdesk.store import NewsletterMeta, RestStore


def _response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = json.dumps(payload).encode()
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    return resp


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def store(http):
    return RestStore("https://db.example.com/", "anon-key", timeout=2, session=http)


def test_requires_url_and_key():
    with pytest.raises(ValidationError):
        RestStore("", "key")


def test_get_articles_query_and_normalization(store, http):
    http.get.return_value = _response([
        {'id': 1, 'title': 'A', 'country': 'hongkong', 'selected_for_newsletter': True},
        {'id': 2, 'title': 'B', 'publishedInNewsletter': True, 'newsletterId': 4},
    ])

    articles = store.get_articles()

    args, kwargs = http.get.call_args
    assert args[0] == "https://db.example.com/rest/v1/apac_article"
    assert ('title', 'not.is.null') in kwargs['params']
    assert ('order', 'selected_for_newsletter.desc,id.asc') in kwargs['params']
    assert kwargs['timeout'] == 2
    assert kwargs['headers']['Authorization'] == "Bearer anon-key"
    assert articles[0].country == 'Hong Kong'
    assert articles[1].selected_for_newsletter is True
    assert articles[1].newsletter_id == 4


def test_access_token_replaces_anon_bearer(store, http):
    http.get.return_value = _response([])
    store.set_access_token("user-jwt")
    store.get_newsletters()
    assert http.get.call_args[1]['headers']['Authorization'] == "Bearer user-jwt"
    assert http.get.call_args[1]['headers']['apikey'] == "anon-key"


def test_read_timeout_becomes_fetch_error(store, http):
    http.get.side_effect = requests.Timeout("slow")
    with pytest.raises(FetchError):
        store.get_articles()


def test_read_http_error_becomes_fetch_error(store, http):
    http.get.return_value = _response({'message': 'boom'}, status_code=500)
    with pytest.raises(FetchError):
        store.get_newsletters()


def test_get_articles_by_ids_uses_in_filter(store, http):
    http.get.return_value = _response([])
    assert store.get_articles_by_ids([]) == []
    http.get.assert_not_called()

    store.get_articles_by_ids([3, 5])
    assert ('id', 'in.(3,5)') in http.get.call_args[1]['params']


def test_update_article_flags(store, http):
    http.request.return_value = _response([{'id': 3, 'title': 'C', 'selected_for_newsletter': True}])

    article = store.update_article_flags(3, selected_for_newsletter=True)

    args, kwargs = http.request.call_args
    assert args[0] == 'PATCH'
    assert kwargs['params'] == {'id': 'eq.3'}
    assert json.loads(kwargs['data']) == {'selected_for_newsletter': True}
    assert kwargs['headers']['Prefer'] == 'return=representation'
    assert article.selected_for_newsletter is True


def test_update_missing_article(store, http):
    http.request.return_value = _response([])
    with pytest.raises(NotFoundError):
        store.update_article_flags(99, selected_for_newsletter=True)


def test_write_timeout_becomes_store_write_error(store, http):
    http.request.side_effect = requests.Timeout("slow")
    with pytest.raises(StoreWriteError):
        store.update_article_flags(3, selected_for_newsletter=False)


def test_create_newsletter_uses_hosted_column_names(store, http):
    http.request.return_value = _response([{
        'id': 8, 'title': 'T', 'description': 'D', 'publishDate': '2024-01-01',
        'views': 0, 'uniqueReaders': 0, 'articles': [1, 2],
    }])

    newsletter = store.create_newsletter(
        NewsletterMeta(title='T', description='D', banner_image_url='https://img/x.png', publish_date='2024-01-01'),
        [1, 2],
    )

    payload = json.loads(http.request.call_args[1]['data'])[0]
    assert payload['publishDate'] == '2024-01-01'
    assert payload['uniqueReaders'] == 0
    assert payload['bannerImageUrl'] == 'https://img/x.png'
    assert payload['articles'] == [1, 2]
    assert newsletter.id == 8
    assert newsletter.articles == [1, 2]


def test_increment_reads_then_patches(store, http):
    http.get.return_value = _response([{'id': 8, 'uniqueReaders': 4}])
    http.request.return_value = _response([{'id': 8, 'uniqueReaders': 5}])

    store.increment_unique_readers(8)

    assert json.loads(http.request.call_args[1]['data']) == {'uniqueReaders': 5}


def test_increment_unknown_kind(store):
    with pytest.raises(ValidationError):
        store.increment_views('comment', 1)


def test_rest_store_has_no_transactions(store):
    assert store.supports_transactions is False
    with store.transaction() as tx:
        assert tx is store
