import logging

from flask import request, jsonify

from ...core.exceptions import FetchError
from ...store import get_store
from ..auth.utils import login_required
from . import analytics_bp
from . import aggregator

logger = logging.getLogger(__name__)


def _load(fetch, what):
    """Run a store read, falling back to an empty list and an error message"""
    try:
        return fetch(), None
    except FetchError as e:
        logger.error(f"Error fetching {what}: {e}")
        return [], f"Failed to load {what}. Please try again."


def _first_error(*errors):
    return next((e for e in errors if e), None)


@analytics_bp.route('/overview')
@login_required
def get_overview():
    """Headline counts for the manager dashboard"""
    store = get_store()
    articles, articles_error = _load(store.get_articles, 'articles')
    newsletters, newsletters_error = _load(store.get_newsletters, 'newsletters')

    return jsonify({
        'overview': aggregator.overview(articles, newsletters),
        'category_distribution': aggregator.count_by_category(articles),
        'country_distribution': aggregator.count_by_country(articles),
        'error': _first_error(articles_error, newsletters_error),
    })


@analytics_bp.route('/content-performance')
@login_required
def get_content_performance():
    """Distribution, views per dimension and the sortable article table"""
    status = request.args.get('status', 'all')
    sort_by = request.args.get('sort_by', 'created_at')
    order = request.args.get('order', 'desc')

    articles, error = _load(get_store().get_articles, 'articles')
    table = aggregator.sort_articles(articles, status=status, sort_by=sort_by, order=order)

    return jsonify({
        'distribution': aggregator.publication_distribution(articles),
        'views_by_category': aggregator.views_by_dimension(articles, 'category'),
        'views_by_country': aggregator.views_by_dimension(articles, 'country'),
        'articles': [a.to_dict() for a in table],
        'error': error,
    })


@analytics_bp.route('/reader-engagement')
@login_required
def get_reader_engagement():
    """Newsletter views and unique readers"""
    limit = request.args.get('limit', 5, type=int)
    sort_by = request.args.get('sort_by', 'publish_date')
    order = request.args.get('order', 'desc')

    store = get_store()
    newsletters, newsletters_error = _load(store.get_newsletters, 'newsletters')
    published, articles_error = _load(store.get_published_articles, 'articles')
    table = aggregator.sort_newsletters(newsletters, sort_by=sort_by, order=order)

    return jsonify({
        'top_newsletters': aggregator.newsletter_performance(newsletters, limit=limit),
        'newsletters': [n.to_dict() for n in table],
        'total_views': sum(n.views for n in newsletters),
        'total_unique_readers': sum(n.unique_readers for n in newsletters),
        'views_by_category': aggregator.views_by_dimension(published, 'category'),
        'error': _first_error(newsletters_error, articles_error),
    })
