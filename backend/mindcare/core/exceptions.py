"""
Domain errors raised by the service and storage layers.

The API layer maps each of these to an HTTP status (see api/errors.py).
"""

from typing import Optional


class MindCareError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.message = message
        self.resource_id = resource_id
        super().__init__(self.message)


class ValidationError(MindCareError):
    """Malformed or empty input, rejected before any I/O."""
    pass


class NotFoundError(MindCareError):
    """Session or owning user does not exist."""
    pass


class ForbiddenError(MindCareError):
    """Caller is authenticated but does not own the target resource."""
    pass


class InvalidStateError(MindCareError):
    """Operation not allowed in the session's current status."""
    pass


class ConflictError(MindCareError):
    """Unique constraint violated (e.g. email already registered)."""
    pass


class StorageError(MindCareError):
    """Durable store unavailable or returned unreadable data."""
    pass
