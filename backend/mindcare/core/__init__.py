"""Core module - domain errors and the therapy chat business logic."""

from .exceptions import (
    MindCareError, ValidationError, NotFoundError, ForbiddenError,
    InvalidStateError, ConflictError, StorageError
)

__all__ = [
    'MindCareError', 'ValidationError', 'NotFoundError', 'ForbiddenError',
    'InvalidStateError', 'ConflictError', 'StorageError'
]
