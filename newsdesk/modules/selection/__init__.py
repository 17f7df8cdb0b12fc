"""
Selection Module
================

Analyst dashboard API: filter the collected articles and toggle which of
them go into the next newsletter.
"""

from flask import Blueprint

selection_bp = Blueprint(
    'selection',
    __name__,
    url_prefix='/api/articles'
)

from .engine import ArticleFilter, SelectionState, SelectionEngine, list_articles
from . import routes

__all__ = ['selection_bp', 'ArticleFilter', 'SelectionState', 'SelectionEngine', 'list_articles']
