"""ORM models package export."""

from spacebook.models.reservation import (
    HalfDaySession,
    PricingType,
    Reservation,
    ReservationStatus,
)
from spacebook.models.space import Space, SpaceHour

__all__ = [
    "HalfDaySession",
    "PricingType",
    "Reservation",
    "ReservationStatus",
    "Space",
    "SpaceHour",
]
