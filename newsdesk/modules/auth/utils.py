from functools import wraps

from flask import session, jsonify, current_app

from ...core.config import get_config_value
from .clients import LocalAuth, HostedAuth


def get_auth_client():
    """The auth client attached to the running app (created on first use)"""
    client = current_app.extensions.get('newsdesk_auth')
    if client is None:
        backend = (get_config_value('STORE_BACKEND', 'sqlite') or 'sqlite').lower()
        if backend == 'rest':
            client = HostedAuth(
                get_config_value('STORE_URL'),
                get_config_value('STORE_KEY'),
                timeout=float(get_config_value('STORE_TIMEOUT', 10)),
            )
        else:
            client = LocalAuth(get_config_value('NEWS_DB'), get_config_value('ANALYSTS_TABLE', 'analysts'))
        current_app.extensions['newsdesk_auth'] = client
    return client


def login_required(f):
    """Decorator to require an analyst session on JSON routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'analyst_email' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
