"""Shared API helpers for route handlers.

Maps service-layer exceptions to HTTP responses so every router reports
the same failure the same way.
"""

import logging

from fastapi import HTTPException

from services.exceptions import (
    ConcurrentModificationError,
    DuplicateTickerError,
    InvalidInputError,
    NotFoundError,
    PortfolioError,
    RefreshInProgressError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: PortfolioError) -> HTTPException:
    """Translate a domain error into the HTTPException to raise.

    Args:
        error: Exception raised by a service.

    Returns:
        HTTPException with status 400 (bad input, detail carries the
        field), 404 (not found), 409 (duplicate, concurrent change,
        refresh running) or 503 (store unavailable).
    """
    if isinstance(error, InvalidInputError):
        return HTTPException(
            status_code=400, detail={"message": str(error), "field": error.field}
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(
        error, (DuplicateTickerError, ConcurrentModificationError, RefreshInProgressError)
    ):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        return HTTPException(status_code=503, detail=str(error))
    logger.error("Unmapped portfolio error: %s", error, exc_info=error)
    return HTTPException(status_code=500, detail="An unexpected error occurred.")
