"""
API error handling.

Maps domain errors raised by the service and storage layers to HTTP responses
with a {"detail": "..."} body.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    MindCareError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: MindCareError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_service_errors(func: F) -> F:
    """
    Decorator for route handlers translating domain errors to HTTPExceptions.

    Storage failures are reported as a transient error; anything unexpected
    becomes a generic 500 without internal details.
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except StorageError as e:
            logger.error(
                f"Storage failure: {e.message}",
                extra={"extra_fields": {"resource_id": e.resource_id}}
            )
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Service temporarily unavailable, please try again"
            )

        except MindCareError as e:
            code = status_for(e)
            logger.warning(
                f"Request rejected ({code}): {e.message}",
                extra={"extra_fields": {"resource_id": e.resource_id, "error": type(e).__name__}}
            )
            raise HTTPException(status_code=code, detail=e.message)

        except Exception as e:
            logger.exception(f"Unexpected failure in {func.__name__}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error"
            )

    return wrapper  # type: ignore
