"""Pydantic schemas for reservations."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from spacebook.models.reservation import HalfDaySession, PricingType, ReservationStatus
from spacebook.services.pricing_service import BookingParams


class BookingParamsPayload(BaseModel):
    """Pricing-type specific booking inputs."""

    start: datetime | date | None = None
    end: datetime | date | None = None
    session_date: date | None = None
    session: HalfDaySession | None = None
    end_date: date | None = None
    month_count: int | None = Field(default=None, ge=1, le=120)
    year_count: int | None = Field(default=None, ge=1, le=30)

    def to_params(self) -> BookingParams:
        return BookingParams(
            start=self.start,
            end=self.end,
            session_date=self.session_date,
            session=self.session,
            end_date=self.end_date,
            month_count=self.month_count,
            year_count=self.year_count,
        )


class ReservationCreate(BookingParamsPayload):
    """Payload for creating reservations. New reservations start pending."""

    space_id: uuid.UUID
    pricing_type: PricingType
    customer_name: str = Field(min_length=1, max_length=255)
    notes: str | None = Field(default=None, max_length=1024)


class ReservationReschedule(BookingParamsPayload):
    """Move a reservation to a new window, optionally changing pricing type."""

    pricing_type: PricingType | None = None


class ReservationUpdate(BaseModel):
    """Mutable descriptive fields."""

    customer_name: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = Field(default=None, max_length=1024)


class ReservationStatusUpdate(BaseModel):
    """External status action such as approval or cancellation."""

    status: ReservationStatus


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    space_id: uuid.UUID
    customer_name: str
    pricing_type: PricingType
    half_day_session: HalfDaySession | None = None
    status: ReservationStatus
    effective_status: ReservationStatus | None = None
    start_at: datetime
    end_at: datetime
    base_price: Decimal | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusTransitionRead(BaseModel):
    reservation_id: uuid.UUID
    from_status: ReservationStatus
    to_status: ReservationStatus

    model_config = ConfigDict(from_attributes=True)


class TickResponse(BaseModel):
    evaluated_at: datetime
    transitions: list[StatusTransitionRead]
