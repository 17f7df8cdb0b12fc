"""
Newsdesk Auth Module

Provides analyst authentication:
- Email/password sign-in (local analysts table or hosted store auth)
- Session change notifications
- login_required guard for the JSON API
"""

from flask import Blueprint

auth_bp = Blueprint(
    'auth',
    __name__,
    url_prefix='/api/auth'
)

from .clients import AuthClient, LocalAuth, HostedAuth, Session, SIGNED_IN, SIGNED_OUT
from .utils import get_auth_client, login_required
from . import routes

__all__ = [
    'auth_bp', 'AuthClient', 'LocalAuth', 'HostedAuth', 'Session',
    'SIGNED_IN', 'SIGNED_OUT', 'get_auth_client', 'login_required',
]
