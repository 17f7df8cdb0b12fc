from flask import request, session, jsonify

from ...store import get_store
from . import reader_bp
from .service import ReaderService

SEEN_NEWSLETTERS_LIMIT = 200


@reader_bp.route('/newsletter', methods=['GET'])
def view_newsletter():
    """Standalone reader view: /newsletter?id=<id>"""
    newsletter_id = request.args.get('id')

    # Browser sessions that already opened this newsletter are not unique readers again
    seen = session.get('seen_newsletters', [])
    first_visit = str(newsletter_id) not in seen

    view = ReaderService(get_store()).open_newsletter(newsletter_id, first_visit=first_visit)

    if first_visit:
        session['seen_newsletters'] = (seen + [str(newsletter_id)])[-SEEN_NEWSLETTERS_LIMIT:]
    return jsonify(view.to_dict())


@reader_bp.route('/api/newsletters/<newsletter_id>/articles/<article_id>/view', methods=['POST'])
def article_view(newsletter_id, article_id):
    """Record a reader opening an article from a newsletter"""
    recorded = ReaderService(get_store()).record_article_view(article_id)
    return jsonify({'success': recorded, 'newsletter_id': newsletter_id, 'article_id': article_id})
