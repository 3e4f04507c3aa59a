"""Map reconciliation errors onto HTTP responses"""

import logging

from fastapi import HTTPException

from ..errors import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ReconciliationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: 404,
    PermissionDeniedError: 403,
    ValidationError: 422,
    PersistenceError: 500,
}


def to_http_exception(error: ReconciliationError) -> HTTPException:
    status_code = STATUS_CODES.get(type(error), 500)
    if status_code >= 500:
        logger.error(f"❌ {type(error).__name__} at stage '{error.stage}': {error.message}")
        detail = "The change could not be saved. Please try again."
    else:
        detail = error.message
    return HTTPException(status_code=status_code, detail=detail)
