"""
Publication Engine
==================

Turns a set of selected, unpublished articles into one Newsletter and marks
every one of them as published in it.

Both writes run inside store.transaction(). On the sqlite store that is a
real transaction; on the hosted store it is not, and a failure after the
newsletter insert is reported as a partial PublicationError. No automatic
rollback is attempted.
"""

import logging
from datetime import datetime

from ...core.exceptions import (
    EmptySelectionError, ValidationError, NotFoundError, InvalidStateError,
    StoreError, PublicationError
)
from ...core.logging_service import db_log
from ...store.models import NewsletterMeta, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Latest news and insights from the banking sector across Asia-Pacific."


def default_title(now=None):
    """Title the publish form starts with"""
    now = now or datetime.now()
    return f"Banking Sector Newsletter - {now.strftime('%d/%m/%Y')}"


def _dedupe(ids):
    seen = set()
    result = []
    for article_id in ids:
        key = str(article_id)
        if key not in seen:
            seen.add(key)
            result.append(article_id)
    return result


class PublicationEngine:

    def __init__(self, store):
        self.store = store

    def validate(self, meta, article_ids):
        """Check the request before touching the store; returns cleaned (meta, ids)"""
        ids = _dedupe(article_ids or [])
        if not ids:
            raise EmptySelectionError("No articles selected for newsletter")

        errors = {}
        for name in ('title', 'description', 'banner_image_url', 'publish_date'):
            value = getattr(meta, name)
            if value is not None and not isinstance(value, str):
                errors[name] = 'Must be text'
        if errors:
            raise ValidationError("Newsletter fields must be text", errors)

        title = (meta.title or '').strip()
        description = (meta.description or '').strip()
        if not title:
            errors['title'] = 'Title is required'
        if not description:
            errors['description'] = 'Description is required'
        if errors:
            raise ValidationError("Newsletter title and description are required", errors)

        meta = NewsletterMeta(
            title=title,
            description=description,
            banner_image_url=(meta.banner_image_url or '').strip() or None,
            publish_date=meta.publish_date or utc_now_iso(),
        )
        return meta, ids

    def _check_candidates(self, ids):
        found = {str(a.id): a for a in self.store.get_articles_by_ids(ids)}

        missing = [i for i in ids if str(i) not in found]
        if missing:
            raise NotFoundError("Some articles do not exist", {'missing_ids': missing})

        not_selected = [found[str(i)].id for i in ids if not found[str(i)].selected_for_newsletter]
        already_published = [found[str(i)].id for i in ids if found[str(i)].published_in_newsletter]
        if not_selected or already_published:
            raise InvalidStateError("Only selected, unpublished articles can be published", {
                'not_selected': not_selected,
                'already_published': already_published,
            })

        # Use the store's own identifiers from here on
        return [found[str(i)].id for i in ids]

    def publish(self, meta, article_ids):
        """
        Create a newsletter from the given articles.

        Raises:
            EmptySelectionError: no article ids
            ValidationError: blank title or description
            NotFoundError: an id is unknown
            InvalidStateError: an article is not selected or already published
            PublicationError: a store write failed (see .partial)
        """
        meta, ids = self.validate(meta, article_ids)
        ids = self._check_candidates(ids)

        newsletter = None
        updated = []
        try:
            with self.store.transaction():
                newsletter = self.store.create_newsletter(meta, ids)
                for article_id in ids:
                    self.store.update_article_flags(
                        article_id,
                        selected_for_newsletter=True,
                        published_in_newsletter=True,
                        newsletter_id=newsletter.id,
                    )
                    updated.append(article_id)
        except (StoreError, NotFoundError) as e:
            failed = [i for i in ids if i not in updated]
            partial = newsletter is not None and not self.store.supports_transactions
            logger.error(f"Publishing failed: {e}")
            db_log('error', 'publication', 'Failed to publish newsletter', {
                'error': str(e),
                'newsletter_id': newsletter.id if newsletter else None,
                'updated_ids': updated,
                'failed_ids': failed,
                'partial': partial,
            })
            raise PublicationError(
                f"Failed to publish newsletter: {e.message}",
                newsletter_id=newsletter.id if (newsletter and partial) else None,
                updated_ids=updated if partial else [],
                failed_ids=failed if partial else ids,
                partial=partial,
            ) from e

        db_log('info', 'publication', 'Newsletter published', {
            'newsletter_id': newsletter.id, 'articles': ids
        })
        return newsletter
