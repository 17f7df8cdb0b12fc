"""
Analytics Module
================

Manager dashboards built from live store data:
- Overview (headline counts)
- Content performance (distribution, views by category/country, tables)
- Reader engagement (newsletter views and unique readers)
"""

from flask import Blueprint

analytics_bp = Blueprint(
    'analytics',
    __name__,
    url_prefix='/api/analytics'
)

from .aggregator import (
    count_by_category, count_by_country, publication_distribution,
    views_by_dimension, overview, newsletter_performance,
    sort_articles, sort_newsletters
)
from . import routes

__all__ = [
    'analytics_bp', 'count_by_category', 'count_by_country', 'publication_distribution',
    'views_by_dimension', 'overview', 'newsletter_performance',
    'sort_articles', 'sort_newsletters',
]
