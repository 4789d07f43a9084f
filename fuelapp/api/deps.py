"""Common dependencies for API routes."""
from __future__ import annotations

import logging
from collections.abc import Iterator

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from fuelapp.db.session import SessionLocal
from fuelapp.services.errors import (
    AuthenticationError,
    CouponCodeGenerationError,
    DomainConflictError,
    DuplicateRecordError,
    FuelServiceError,
    NotFoundError,
    PermissionDeniedError,
    ReconciliationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[FuelServiceError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (DuplicateRecordError, status.HTTP_409_CONFLICT),
    (DomainConflictError, status.HTTP_400_BAD_REQUEST),
    (CouponCodeGenerationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ReconciliationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def http_error(exc: FuelServiceError) -> HTTPException:
    """Translate a service exception into the matching HTTP error."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if status_code >= 500:
        logger.error("service failure", extra={"error": type(exc).__name__, "detail": str(exc)})
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=status_code, detail=str(exc), headers=headers)


__all__ = ["get_db_session", "http_error"]
