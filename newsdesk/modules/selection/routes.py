"""
Selection Routes
================

Analyst dashboard endpoints. Each request loads a fresh SelectionState
from the store; nothing is cached between requests.
"""

from flask import request, session, jsonify

from ...core.logging_service import LoggingService
from ...store import get_store, COUNTRIES, CATEGORIES
from ..auth.utils import login_required
from . import selection_bp
from .engine import ArticleFilter, SelectionEngine, TABS


@selection_bp.route('', methods=['GET'])
@login_required
def get_articles():
    """Filtered article list for the analyst dashboard"""
    article_filter = ArticleFilter.from_args(request.args)
    engine = SelectionEngine(get_store())
    state = engine.load()

    articles = engine.list_articles(state, article_filter)
    return jsonify({
        'articles': [a.to_dict() for a in articles],
        'total': len(state.articles),
        'selected_count': state.selected_count,
        'pending': [a.id for a in state.pending],
        'error': state.error,
    })


@selection_bp.route('/filters', methods=['GET'])
@login_required
def get_filters():
    """Values the dashboard dropdowns and tabs offer"""
    return jsonify({'countries': COUNTRIES, 'categories': CATEGORIES, 'tabs': list(TABS)})


@selection_bp.route('/<article_id>/toggle-selection', methods=['POST'])
@login_required
def toggle_selection(article_id):
    """Select or deselect an article for the next newsletter"""
    engine = SelectionEngine(get_store())
    state = engine.load()
    article, state = engine.toggle_selection(state, article_id)

    LoggingService.log_user_action(
        'selection', 'toggle selection', user_id=session.get('analyst_id'),
        details={'article_id': article.id, 'selected': article.selected_for_newsletter}
    )
    return jsonify({
        'success': True,
        'article': article.to_dict(),
        'selected_count': state.selected_count,
        'pending': [a.id for a in state.pending],
    })


@selection_bp.route('/selected', methods=['GET'])
@login_required
def get_selected():
    """Selected-but-unpublished and published articles"""
    result = SelectionEngine(get_store()).selected_and_published()
    return jsonify({
        'selected': [a.to_dict() for a in result['selected']],
        'published': [a.to_dict() for a in result['published']],
        'error': result['error'],
    })
