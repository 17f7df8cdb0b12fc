"""
Newsdesk Ops Module
===================

- Public /health endpoint for uptime monitors (no auth)
- Recent error feed from app_logs for analysts
"""

from flask import Blueprint

# Public health endpoint (no auth, for uptime monitors)
ops_health_bp = Blueprint(
    'ops_health',
    __name__,
    url_prefix='/health'
)

# Log feed (analyst session)
ops_api_bp = Blueprint(
    'ops_api',
    __name__,
    url_prefix='/api/ops'
)

from . import routes

__all__ = ['ops_health_bp', 'ops_api_bp']
