from flask import request, session, jsonify

from ...core.exceptions import AuthError, ValidationError
from ...core.logging_service import LoggingService
from ...store import get_store, RestStore
from . import auth_bp
from .clients import LocalAuth
from .utils import get_auth_client


def _credentials(email, password):
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Email and password must be text")
    return email, password


def _start_session(auth_session):
    session['analyst_id'] = auth_session.user_id
    session['analyst_email'] = auth_session.email
    session.permanent = True


def _form_data():
    """JSON object or form fields from the request body"""
    data = request.get_json(silent=True)
    if data is None:
        return request.form
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def _use_token(token):
    """Hosted store requests act as the signed-in analyst"""
    store = get_store()
    if isinstance(store, RestStore):
        store.set_access_token(token)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Sign in with email and password"""
    data = _form_data()
    email, password = _credentials(data.get('email', ''), data.get('password', ''))

    try:
        auth_session = get_auth_client().sign_in(email, password)
    except AuthError:
        LoggingService.log_user_action('auth', 'failed login', details={'email': email})
        raise

    _start_session(auth_session)
    _use_token(auth_session.access_token)
    LoggingService.log_user_action('auth', 'login', user_id=auth_session.user_id)
    return jsonify({'success': True, 'session': auth_session.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Sign out of the current session"""
    if 'analyst_email' not in session:
        # Nobody signed in from this browser; leave the shared auth session alone
        return jsonify({'success': True})

    user_id = session.get('analyst_id')
    get_auth_client().sign_out()
    _use_token(None)
    session.pop('analyst_id', None)
    session.pop('analyst_email', None)
    LoggingService.log_user_action('auth', 'logout', user_id=user_id)
    return jsonify({'success': True})


@auth_bp.route('/session', methods=['GET'])
def current_session():
    """Who is signed in (null when nobody)"""
    if 'analyst_email' not in session:
        return jsonify({'session': None})
    return jsonify({'session': {
        'user_id': session.get('analyst_id'),
        'email': session.get('analyst_email'),
    }})


@auth_bp.route('/analysts', methods=['POST'])
def create_analyst():
    """Create an analyst account (local backend only).

    The first account can be created anonymously; after that an analyst
    must be signed in.
    """
    client = get_auth_client()
    if not isinstance(client, LocalAuth):
        raise ValidationError("Analyst accounts are managed by the hosted store")
    if client.analyst_count() > 0 and 'analyst_email' not in session:
        raise AuthError("Authentication required")

    data = _form_data()
    analyst_id = client.create_analyst(*_credentials(data.get('email', ''), data.get('password', '')))
    LoggingService.log_user_action('auth', 'created analyst', user_id=session.get('analyst_id'),
                                   details={'analyst_id': analyst_id})
    return jsonify({'success': True, 'id': analyst_id}), 201

