"""Bookable spaces, their price table and weekly operating hours."""

from __future__ import annotations

import uuid
from datetime import time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spacebook.db.base import Base
from spacebook.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from spacebook.models.reservation import Reservation


class Space(TimestampMixin, Base):
    """A physical workspace that can be reserved."""

    __tablename__ = "spaces"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    always_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    halfday_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    monthly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    yearly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    hours: Mapped[list["SpaceHour"]] = relationship(
        "SpaceHour",
        back_populates="space",
        cascade="all, delete-orphan",
        order_by="SpaceHour.day_of_week",
        lazy="selectin",
    )
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation",
        back_populates="space",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SpaceHour(TimestampMixin, Base):
    """Opening window for one weekday (Sunday=0 .. Saturday=6)."""

    __tablename__ = "space_hours"
    __table_args__ = (
        UniqueConstraint("space_id", "day_of_week", name="uq_space_hours_day"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    space_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    open_time: Mapped[time | None] = mapped_column(Time())
    close_time: Mapped[time | None] = mapped_column(Time())

    space: Mapped["Space"] = relationship("Space", back_populates="hours")
