"""Translate booking service errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from spacebook.core.errors import (
    BookingRejectedError,
    BookingValidationError,
    UpstreamUnavailableError,
)
from spacebook.schemas.availability import ViolationRead


def booking_http_error(exc: Exception) -> HTTPException:
    """Map a booking service exception onto the matching HTTP status."""
    if isinstance(exc, BookingRejectedError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "violations": [
                    ViolationRead.from_violation(violation).model_dump(mode="json")
                    for violation in exc.violations
                ],
            },
        )
    if isinstance(exc, BookingValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        )
    if isinstance(exc, UpstreamUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        )
    if isinstance(exc, ValueError) and "not found" in str(exc).lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
