"""
Ops Routes
==========

Health check and error feed.
"""

import time
from datetime import datetime

from flask import jsonify, request

from ...core.exceptions import FetchError
from ...core.logging_service import LoggingService
from ...store import get_store
from ..auth.utils import login_required
from . import ops_health_bp, ops_api_bp

_STARTED = time.time()


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _check_store():
    """Can the store answer a newsletters read?"""
    started = time.time()
    try:
        count = len(get_store().get_newsletters())
    except FetchError as e:
        return {'ok': False, 'error': e.message}
    return {'ok': True, 'newsletters': count, 'latency_ms': round((time.time() - started) * 1000, 1)}


def _get_uptime():
    seconds = int(time.time() - _STARTED)
    return {'seconds': seconds, 'human': f"{seconds // 3600}h {(seconds % 3600) // 60}m"}


def _build_health_response():
    store = _check_store()
    status = 'ok' if store['ok'] else 'critical'
    return {
        'status': status,
        'timestamp': datetime.now().isoformat(),
        'checks': {
            'store': store,
            'uptime': _get_uptime(),
        },
    }, status


# ---------------------------------------------------------------------------
# Public routes (ops_health_bp, no auth)
# ---------------------------------------------------------------------------

@ops_health_bp.route('/')
@ops_health_bp.route('')
def health_check():
    """Public health endpoint for uptime monitors."""
    data, status = _build_health_response()
    code = 503 if status == 'critical' else 200
    return jsonify(data), code


# ---------------------------------------------------------------------------
# Analyst routes (ops_api_bp, session auth)
# ---------------------------------------------------------------------------

@ops_api_bp.route('/logs')
@login_required
def api_logs():
    """Recent entries from app_logs, optionally filtered by level."""
    limit = request.args.get('limit', 50, type=int)
    level = request.args.get('level')
    logs = LoggingService.recent(limit=min(limit, 200), level=level)
    return jsonify({'logs': logs, 'count': len(logs)})


@ops_api_bp.route('/logs/cleanup', methods=['POST'])
@login_required
def api_logs_cleanup():
    """Delete app_logs rows older than ?days= (default 30)."""
    days = request.args.get('days', 30, type=int)
    deleted = LoggingService.cleanup_old_logs(days_to_keep=max(days, 1))
    return jsonify({'success': True, 'deleted': deleted})
