import logging

from flask import request, session, jsonify

from ...core.exceptions import FetchError, ValidationError
from ...core.logging_service import LoggingService
from ...store import get_store, NewsletterMeta
from ..auth.utils import login_required
from ..selection.engine import SelectionEngine
from . import publication_bp
from .engine import PublicationEngine, default_title, DEFAULT_DESCRIPTION

logger = logging.getLogger(__name__)


@publication_bp.route('/defaults', methods=['GET'])
@login_required
def form_defaults():
    """Initial values for the publish form"""
    return jsonify({'title': default_title(), 'description': DEFAULT_DESCRIPTION})


@publication_bp.route('', methods=['POST'])
@login_required
def publish():
    """
    Publish a newsletter.

    Body: title, description, banner_image_url, publish_date, article_ids.
    Missing title/description fall back to the form defaults; blank ones are
    rejected. Without article_ids the current pending selection is used.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")

    article_ids = data.get('article_ids')
    if article_ids is None:
        state = SelectionEngine(get_store()).load()
        if state.error:
            raise FetchError(state.error)
        article_ids = [a.id for a in state.pending]
    elif not isinstance(article_ids, list):
        raise ValidationError("article_ids must be a list")

    meta = NewsletterMeta(
        title=data['title'] if 'title' in data else default_title(),
        description=data['description'] if 'description' in data else DEFAULT_DESCRIPTION,
        banner_image_url=data.get('banner_image_url'),
        publish_date=data.get('publish_date'),
    )

    newsletter = PublicationEngine(get_store()).publish(meta, article_ids)

    LoggingService.log_user_action(
        'publication', 'published newsletter', user_id=session.get('analyst_id'),
        details={'newsletter_id': newsletter.id, 'articles': newsletter.articles}
    )
    return jsonify({'success': True, 'newsletter': newsletter.to_dict()}), 201


@publication_bp.route('', methods=['GET'])
def list_newsletters():
    """Published newsletters, newest first"""
    try:
        newsletters = get_store().get_newsletters()
        error = None
    except FetchError as e:
        logger.error(f"Error fetching newsletters: {e}")
        newsletters = []
        error = "Failed to load newsletters. Please try again."
    return jsonify({'newsletters': [n.to_dict() for n in newsletters], 'error': error})
