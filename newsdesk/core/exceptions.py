"""
Workflow error taxonomy.

Every error carries a user-facing message, optional details and the HTTP
status the API layer answers with.
"""


class NewsdeskError(Exception):
    """Base class for all workflow errors."""

    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        payload = {'error': self.message, 'type': type(self).__name__}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(NewsdeskError):
    """Bad input; blocks submission."""

    status_code = 400


class EmptySelectionError(ValidationError):
    """Publish was requested with no articles."""


class NotFoundError(NewsdeskError):
    """An operation referenced a missing identifier."""

    status_code = 404


class InvalidStateError(NewsdeskError):
    """An operation would violate a workflow invariant."""

    status_code = 409


class AuthError(NewsdeskError):
    """Missing or rejected credentials."""

    status_code = 401


class StoreError(NewsdeskError):
    """The backing store failed or timed out."""

    status_code = 502


class FetchError(StoreError):
    """A store read failed."""


class StoreWriteError(StoreError):
    """A store write failed; nothing was applied locally."""


class PublicationError(NewsdeskError):
    """
    Publishing failed part-way or entirely.

    ``partial`` is True when some writes reached the store and the caller
    has to compensate or retry.
    """

    status_code = 502

    def __init__(self, message, newsletter_id=None, updated_ids=None, failed_ids=None, partial=False):
        self.newsletter_id = newsletter_id
        self.updated_ids = list(updated_ids or [])
        self.failed_ids = list(failed_ids or [])
        self.partial = partial
        super().__init__(message, {
            'newsletter_id': newsletter_id,
            'updated_ids': self.updated_ids,
            'failed_ids': self.failed_ids,
            'partial': partial,
        })
