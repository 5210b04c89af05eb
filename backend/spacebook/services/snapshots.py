"""Immutable inputs and violation values shared by the booking engine.

The engine functions never touch the ORM or the clock. Callers hand them
frozen snapshots of a space and its reservations, built either from ORM rows
(``from_model``) or directly in tests and batch jobs.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar
from zoneinfo import ZoneInfo

from spacebook.models.reservation import HalfDaySession, PricingType, ReservationStatus

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from spacebook.models.reservation import Reservation
    from spacebook.models.space import Space

FULL_DAY_TYPES = frozenset(
    {PricingType.DAILY, PricingType.MONTHLY, PricingType.YEARLY}
)
HOURLY_TYPES = frozenset({PricingType.HOURLY, PricingType.HALFDAY})
OCCUPYING_STATUSES = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.ACTIVE})

WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

MINUTES_PER_DAY = 24 * 60

HALF_DAY_SESSIONS: dict[HalfDaySession, tuple[int, int]] = {
    HalfDaySession.MORNING: (6, 12),
    HalfDaySession.AFTERNOON: (8, 14),
    HalfDaySession.DAY: (10, 16),
    HalfDaySession.EVENING: (12, 18),
    HalfDaySession.NIGHT: (18, 24),
}


def coerce_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the store."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    """Return the naive wall-clock time of ``value`` in ``tz``.

    Naive datetimes are taken to already be wall-clock times of the space.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def weekday_index(day: date) -> int:
    """Sunday=0 .. Saturday=6."""
    return (day.weekday() + 1) % 7


def iter_days(first: date, last: date) -> Iterator[date]:
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass(slots=True, frozen=True)
class DaySchedule:
    """Opening window for a single weekday."""

    day_of_week: int
    is_open: bool
    open_time: time | None = None
    close_time: time | None = None

    @property
    def open_minutes(self) -> int:
        return minutes_of(self.open_time) if self.open_time else 0

    @property
    def close_minutes(self) -> int:
        # A close time of 00:00 on an open day means "until midnight".
        if self.close_time is None or self.close_time == time.min:
            return MINUTES_PER_DAY
        return minutes_of(self.close_time)

    @property
    def window_label(self) -> str:
        close = self.close_minutes
        return (
            f"{self.open_minutes // 60:02d}:{self.open_minutes % 60:02d}"
            f"-{close // 60:02d}:{close % 60:02d}"
        )


@dataclass(slots=True, frozen=True)
class OperatingSchedule:
    """Weekly schedule of a space, or an always-open flag."""

    always_open: bool = False
    days: tuple[DaySchedule, ...] = ()
    timezone: str = "UTC"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def for_day(self, day: date) -> DaySchedule | None:
        index = weekday_index(day)
        for entry in self.days:
            if entry.day_of_week == index:
                return entry
        return None


@dataclass(slots=True, frozen=True)
class PriceTable:
    """Unit rate per pricing type. Missing or zero means unavailable."""

    hourly: Decimal | None = None
    halfday: Decimal | None = None
    daily: Decimal | None = None
    monthly: Decimal | None = None
    yearly: Decimal | None = None

    def rate_for(self, pricing_type: PricingType) -> Decimal | None:
        raw = getattr(self, pricing_type.value)
        if raw is None:
            return None
        rate = Decimal(str(raw))
        if rate <= 0:
            return None
        return rate


@dataclass(slots=True, frozen=True)
class SpaceSnapshot:
    id: uuid.UUID
    name: str
    schedule: OperatingSchedule
    pricing: PriceTable
    is_active: bool = True

    @classmethod
    def from_model(cls, space: "Space") -> "SpaceSnapshot":
        days = tuple(
            DaySchedule(
                day_of_week=hour.day_of_week,
                is_open=hour.is_open,
                open_time=hour.open_time,
                close_time=hour.close_time,
            )
            for hour in space.hours
        )
        return cls(
            id=space.id,
            name=space.name,
            is_active=space.is_active,
            schedule=OperatingSchedule(
                always_open=space.always_open,
                days=days,
                timezone=space.timezone or "UTC",
            ),
            pricing=PriceTable(
                hourly=space.hourly_rate,
                halfday=space.halfday_rate,
                daily=space.daily_rate,
                monthly=space.monthly_rate,
                yearly=space.yearly_rate,
            ),
        )


@dataclass(slots=True, frozen=True)
class ReservationSnapshot:
    id: uuid.UUID
    space_id: uuid.UUID
    pricing_type: PricingType
    status: ReservationStatus
    start_at: datetime
    end_at: datetime
    base_price: Decimal | None = None
    customer_name: str | None = None
    half_day_session: HalfDaySession | None = None
    timezone: str = "UTC"

    @classmethod
    def from_model(
        cls, reservation: "Reservation", *, timezone: str | None = None
    ) -> "ReservationSnapshot":
        return cls(
            id=reservation.id,
            space_id=reservation.space_id,
            pricing_type=reservation.pricing_type,
            status=reservation.status,
            start_at=coerce_utc(reservation.start_at),
            end_at=coerce_utc(reservation.end_at),
            base_price=reservation.base_price,
            customer_name=reservation.customer_name,
            half_day_session=reservation.half_day_session,
            timezone=timezone or reservation.space_timezone or "UTC",
        )

    @property
    def occupied_until(self) -> datetime:
        """Exclusive end of the booked window, in UTC.

        Daily, monthly and yearly rows store local midnight of their last
        day, so they run until the following local midnight.
        """
        end = coerce_utc(self.end_at)
        if self.pricing_type not in FULL_DAY_TYPES:
            return end
        tz = ZoneInfo(self.timezone)
        next_day = end.astimezone(tz).date() + timedelta(days=1)
        return datetime.combine(next_day, time.min, tzinfo=tz).astimezone(UTC)


@dataclass(slots=True, frozen=True)
class BookingCandidate:
    """A proposed window that has not been persisted yet."""

    pricing_type: PricingType
    start_at: datetime
    end_at: datetime
    half_day_session: HalfDaySession | None = None


@dataclass(slots=True, frozen=True)
class ClosedDay:
    """The window touches a day on which the space is closed."""

    kind: ClassVar[str] = "closed_day"

    day: date
    label: str

    @property
    def message(self) -> str:
        return f"Space is closed on {self.label} ({self.day.isoformat()})"


@dataclass(slots=True, frozen=True)
class OutsideHours:
    """The window starts or ends outside the day's opening window."""

    kind: ClassVar[str] = "outside_hours"

    day: date
    window: str

    @property
    def message(self) -> str:
        return (
            f"Outside operating window {self.window} on {self.day.isoformat()}"
        )


@dataclass(slots=True, frozen=True)
class Overlap:
    """The window collides with existing reservations."""

    kind: ClassVar[str] = "overlap"

    conflicting_reservations: tuple[ReservationSnapshot, ...] = ()

    @property
    def message(self) -> str:
        names = ", ".join(
            reservation.customer_name or str(reservation.id)
            for reservation in self.conflicting_reservations
        )
        return f"Overlaps existing reservations: {names}"


Violation = ClosedDay | OutsideHours | Overlap
