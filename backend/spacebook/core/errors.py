"""Exception types raised by the booking services."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from spacebook.services.snapshots import Violation


class BookingValidationError(ValueError):
    """Malformed booking window or missing pricing parameters."""


class BookingRejectedError(ValueError):
    """A candidate booking failed calendar or overlap checks."""

    def __init__(self, violations: Sequence["Violation"]) -> None:
        self.violations = tuple(violations)
        summary = "; ".join(violation.message for violation in self.violations)
        super().__init__(summary or "Reservation rejected")


class UpstreamUnavailableError(RuntimeError):
    """The reservation store could not answer a read."""


__all__ = [
    "BookingRejectedError",
    "BookingValidationError",
    "UpstreamUnavailableError",
]
