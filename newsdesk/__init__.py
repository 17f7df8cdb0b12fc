"""
Newsdesk - Banking News Editorial Workflow
==========================================

A Flask service for an analyst team that curates collected banking-sector
articles into newsletters:
- Selection: filter articles and mark them for the next newsletter
- Publication: publish the selection as a newsletter
- Reader: public newsletter view with view counting
- Analytics: manager dashboards over live store data
- Auth: analyst sign-in

Usage:
    from flask import Flask
    from newsdesk import Newsdesk

    app = Flask(__name__)
    newsdesk = Newsdesk(app)

Or use the factory:
    from newsdesk import create_app
    app = create_app({'STORE_BACKEND': 'rest'})
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from .core.config import Config
from .core.database import Database
from .core.exceptions import NewsdeskError
from .core.logging_service import LoggingService

__version__ = '0.1.0'
__author__ = 'Newsdesk Team'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'auth': True,
    'selection': True,
    'publication': True,
    'reader': True,
    'analytics': True,
    'ops': True,
}


class Newsdesk:
    """
    Flask extension that wires the Newsdesk modules into an app.

    Args:
        app: Flask application (or call init_app later)
        config: optional dict; ``features`` toggles individual modules
    """

    def __init__(self, app=None, config=None):
        self._config = config or {}
        self._registered = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_defaults(app)
        self._setup_database_dir(app)
        self._register_blueprints(app)
        self._register_error_handlers(app)
        self._setup_cors(app)
        app.extensions['newsdesk'] = self
        logger.info(f"Newsdesk initialised with modules: {', '.join(self._registered)}")

    def get_registered_modules(self):
        return list(self._registered)

    @property
    def features(self):
        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features', {}))
        return features

    # ===== Setup steps =====

    def _apply_defaults(self, app):
        """Fill in anything the app config leaves unset from Config"""
        if not app.config.get('SECRET_KEY'):
            app.config['SECRET_KEY'] = Config.SECRET_KEY
        db_dir = app.config.setdefault('DB_DIR', Config.DB_DIR)
        app.config.setdefault('NEWS_DB', os.getenv('NEWS_DB') or os.path.join(db_dir, 'news.db'))
        app.config.setdefault('ANALYTICS_DB', os.getenv('ANALYTICS_DB') or os.path.join(db_dir, 'analytics_log.db'))
        for key in ('STORE_BACKEND', 'STORE_URL', 'STORE_KEY', 'STORE_TIMEOUT',
                    'ARTICLES_TABLE', 'NEWSLETTERS_TABLE', 'ANALYSTS_TABLE', 'CORS_ORIGINS'):
            app.config.setdefault(key, getattr(Config, key))
        if not app.config.get('SECRET_KEY'):
            logger.warning("FLASK_SECRET_KEY is not set; analyst sessions will not work")

    def _setup_database_dir(self, app):
        Database.ensure_dir(app.config['NEWS_DB'])
        Database.ensure_dir(app.config['ANALYTICS_DB'])
        os.makedirs(app.config['DB_DIR'], exist_ok=True)

    def _register_blueprints(self, app):
        features = self.features

        if features.get('auth'):
            from .modules.auth import auth_bp
            app.register_blueprint(auth_bp)
            self._registered.append('auth')

        if features.get('selection'):
            from .modules.selection import selection_bp
            app.register_blueprint(selection_bp)
            self._registered.append('selection')

        if features.get('publication'):
            from .modules.publication import publication_bp
            app.register_blueprint(publication_bp)
            self._registered.append('publication')

        if features.get('reader'):
            from .modules.reader import reader_bp
            app.register_blueprint(reader_bp)
            self._registered.append('reader')

        if features.get('analytics'):
            from .modules.analytics import analytics_bp
            app.register_blueprint(analytics_bp)
            self._registered.append('analytics')

        if features.get('ops'):
            from .modules.ops import ops_health_bp, ops_api_bp
            app.register_blueprint(ops_health_bp)
            app.register_blueprint(ops_api_bp)
            self._registered.append('ops')

    def _register_error_handlers(self, app):
        @app.errorhandler(NewsdeskError)
        def handle_newsdesk_error(error):
            if error.status_code >= 500:
                LoggingService.error(
                    'api', error.message, {'type': type(error).__name__, 'details': error.details}
                )
            return jsonify(error.to_dict()), error.status_code

    def _setup_cors(self, app):
        origins = app.config.get('CORS_ORIGINS') or '*'
        if isinstance(origins, str) and origins != '*':
            origins = [o.strip() for o in origins.split(',') if o.strip()]
        CORS(app, resources={r"/api/*": {"origins": origins}, r"/newsletter": {"origins": origins}},
             supports_credentials=origins != '*')


def create_app(config=None, features=None):
    """Application factory"""
    app = Flask(__name__)
    if config:
        app.config.update(config)
    Newsdesk(app, {'features': features or {}})
    return app


__all__ = ['Newsdesk', 'create_app', 'DEFAULT_FEATURES']
