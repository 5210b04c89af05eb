"""Availability and candidate validation schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from spacebook.models.reservation import PricingType, ReservationStatus
from spacebook.schemas.reservation import BookingParamsPayload
from spacebook.services.snapshots import ClosedDay, OutsideHours, Overlap, Violation


class ReservationBrief(BaseModel):
    """Reservation as shown next to a blocked date or slot."""

    id: uuid.UUID
    customer_name: str | None = None
    pricing_type: PricingType
    status: ReservationStatus
    start_at: datetime
    end_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookedSlotRead(BaseModel):
    day: date
    hour: int

    model_config = ConfigDict(from_attributes=True)


class AvailabilityDayRead(BaseModel):
    day: date
    available: bool
    closed: bool = False
    booked_hours: list[int] = Field(default_factory=list)
    reservations: list[ReservationBrief] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    """Per-day availability for a space."""

    space_id: uuid.UUID
    range_from: date
    range_to: date
    timezone: str
    days: list[AvailabilityDayRead]
    slots: list[BookedSlotRead]


class ViolationRead(BaseModel):
    kind: str
    message: str
    day: date | None = None
    window: str | None = None
    conflicting_reservations: list[ReservationBrief] = Field(default_factory=list)

    @classmethod
    def from_violation(cls, violation: Violation) -> "ViolationRead":
        payload: dict[str, Any] = {"kind": violation.kind, "message": violation.message}
        if isinstance(violation, ClosedDay):
            payload["day"] = violation.day
        elif isinstance(violation, OutsideHours):
            payload["day"] = violation.day
            payload["window"] = violation.window
        elif isinstance(violation, Overlap):
            payload["conflicting_reservations"] = [
                ReservationBrief.model_validate(item)
                for item in violation.conflicting_reservations
            ]
        return cls(**payload)


class DerivedBookingRead(BaseModel):
    pricing_type: PricingType
    start: datetime
    end: datetime
    units: int
    unit_rate: Decimal | None = None
    base_price: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class CandidateRequest(BookingParamsPayload):
    """Proposed booking to validate without persisting it."""

    pricing_type: PricingType
    exclude_reservation_id: uuid.UUID | None = None


class CandidateValidationResponse(BaseModel):
    ok: bool
    derived: DerivedBookingRead
    violations: list[ViolationRead]
    quote: dict[str, Any] | None = None
