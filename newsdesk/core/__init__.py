"""
Newsdesk Core
=============

Core utilities and shared functionality for Newsdesk modules.
"""

from .config import Config, get_config_value
from .database import Database
from .exceptions import (
    NewsdeskError, ValidationError, EmptySelectionError, NotFoundError,
    InvalidStateError, AuthError, StoreError, FetchError, StoreWriteError,
    PublicationError
)
from .logging_service import LoggingService, db_log

__all__ = [
    'Config', 'get_config_value', 'Database', 'LoggingService', 'db_log',
    'NewsdeskError', 'ValidationError', 'EmptySelectionError', 'NotFoundError',
    'InvalidStateError', 'AuthError', 'StoreError', 'FetchError', 'StoreWriteError',
    'PublicationError',
]
