"""
Reader Module
=============

Public newsletter view for readers. No analyst session needed.
"""

from flask import Blueprint

reader_bp = Blueprint('reader', __name__)

from .service import ReaderService, ReaderView, group_by_country
from . import routes

__all__ = ['reader_bp', 'ReaderService', 'ReaderView', 'group_by_country']
