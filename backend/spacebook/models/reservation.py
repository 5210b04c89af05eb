"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, select
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship

from spacebook.db.base import Base
from spacebook.models.mixins import TimestampMixin
from spacebook.models.space import Space


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PricingType(str, enum.Enum):
    """Pricing granularities a space can be booked under."""

    HOURLY = "hourly"
    HALFDAY = "halfday"
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class HalfDaySession(str, enum.Enum):
    """Fixed six-hour half-day windows. They overlap on purpose."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    DAY = "day"
    EVENING = "evening"
    NIGHT = "night"


class Reservation(TimestampMixin, Base):
    """A time-bounded claim on a space at one pricing granularity."""

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_space_window", "space_id", "start_at", "end_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    space_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False
    )
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    pricing_type: Mapped[PricingType] = mapped_column(
        Enum(PricingType, name="pricingtype", values_callable=_enum_values), nullable=False
    )
    half_day_session: Mapped[HalfDaySession | None] = mapped_column(
        Enum(HalfDaySession, name="halfdaysession", values_callable=_enum_values),
        nullable=True,
    )
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, name="reservationstatus", values_callable=_enum_values),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    base_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    notes: Mapped[str | None] = mapped_column(String(1024))

    space_timezone: Mapped[str | None] = column_property(
        select(Space.timezone)
        .where(Space.id == space_id)
        .correlate_except(Space)
        .scalar_subquery()
    )

    space: Mapped["Space"] = relationship("Space", back_populates="reservations")
