"""
Publication Module
==================

Provides:
- Publishing the current selection as a newsletter
- The published-newsletters gallery

Publishing is a pure data-state transition; no email is sent.
"""

from flask import Blueprint

publication_bp = Blueprint(
    'publication',
    __name__,
    url_prefix='/api/newsletters'
)

from .engine import PublicationEngine, default_title, DEFAULT_DESCRIPTION
from . import routes

__all__ = ['publication_bp', 'PublicationEngine', 'default_title', 'DEFAULT_DESCRIPTION']
