"""Reservation index: per-day occupancy and booked hour slots for a space."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from spacebook.core.errors import BookingValidationError
from spacebook.models.reservation import HalfDaySession, PricingType
from spacebook.services.snapshots import (
    FULL_DAY_TYPES,
    HALF_DAY_SESSIONS,
    HOURLY_TYPES,
    OCCUPYING_STATUSES,
    ReservationSnapshot,
    iter_days,
    to_local,
)

FULL_DAY_HOUR_THRESHOLD = 18
_ALL_HOURS = frozenset(range(24))


class Window(Protocol):
    pricing_type: PricingType
    start_at: datetime
    end_at: datetime
    half_day_session: HalfDaySession | None


@dataclass(slots=True, frozen=True)
class BookedSlot:
    space_id: uuid.UUID
    day: date
    hour: int


@dataclass(slots=True, frozen=True)
class AvailabilityDay:
    date: date
    reservations: tuple[ReservationSnapshot, ...]
    booked_hours: tuple[int, ...]
    available: bool


@dataclass(slots=True, frozen=True)
class AvailabilityIndex:
    """Occupancy of one space over an inclusive date range."""

    space_id: uuid.UUID
    range_from: date
    range_to: date
    timezone: str
    days: tuple[AvailabilityDay, ...]
    slots: tuple[BookedSlot, ...]

    def day(self, value: date) -> AvailabilityDay | None:
        offset = (value - self.range_from).days
        if 0 <= offset < len(self.days):
            return self.days[offset]
        return None

    def is_date_available(self, value: date) -> bool:
        entry = self.day(value)
        return entry.available if entry is not None else True

    def unavailable_dates(self) -> list[date]:
        return [entry.date for entry in self.days if not entry.available]


def occupied_days(
    window: Window,
    tz: ZoneInfo,
    *,
    clip_from: date | None = None,
    clip_to: date | None = None,
) -> list[date]:
    """Calendar days a window occupies, in the space's wall-clock time.

    Date-granular types cover start date through end date inclusive. Hourly
    and half-day windows cover each day that ``[start, end)`` overlaps.
    """
    start = to_local(window.start_at, tz)
    end = to_local(window.end_at, tz)
    first = start.date()
    last = end.date()
    if window.pricing_type not in FULL_DAY_TYPES and end.time() == time.min:
        last -= timedelta(days=1)
    if last < first:
        last = first
    if clip_from is not None and first < clip_from:
        first = clip_from
    if clip_to is not None and last > clip_to:
        last = clip_to
    return list(iter_days(first, last))


def occupied_hours(window: Window, day: date, tz: ZoneInfo) -> frozenset[int]:
    """Whole hours of ``day`` touched by the window.

    Partial hours count: a 09:30-10:15 window occupies hours 9 and 10. A
    half-day booking spanning several days holds only its session hours on
    each of them.
    """
    if window.pricing_type in FULL_DAY_TYPES:
        if day in occupied_days(window, tz, clip_from=day, clip_to=day):
            return _ALL_HOURS
        return frozenset()
    if window.pricing_type is PricingType.HALFDAY and window.half_day_session:
        if not occupied_days(window, tz, clip_from=day, clip_to=day):
            return frozenset()
        start_hour, end_hour = HALF_DAY_SESSIONS[window.half_day_session]
        return frozenset(range(start_hour, end_hour))

    day_start = datetime.combine(day, time.min)
    day_end = day_start + timedelta(days=1)
    start = max(to_local(window.start_at, tz), day_start)
    end = min(to_local(window.end_at, tz), day_end)
    if start >= end:
        return frozenset()
    first_hour = start.hour
    if end == day_end:
        last_hour = 24
    else:
        last_hour = end.hour + (1 if end.time() != time(end.hour) else 0)
    return frozenset(range(first_hour, last_hour))


def reservation_sort_key(
    reservation: ReservationSnapshot, tz: ZoneInfo
) -> tuple[datetime, str]:
    return to_local(reservation.start_at, tz), str(reservation.id)


def occupying(
    reservations: Iterable[ReservationSnapshot],
) -> list[ReservationSnapshot]:
    return [r for r in reservations if r.status in OCCUPYING_STATUSES]


def build_index(
    space_id: uuid.UUID,
    reservations: Sequence[ReservationSnapshot],
    range_from: date,
    range_to: date,
    *,
    timezone: str = "UTC",
    full_day_threshold: int = FULL_DAY_HOUR_THRESHOLD,
) -> AvailabilityIndex:
    """Aggregate occupying reservations of a space into a per-day index.

    A day is unavailable when a daily, monthly or yearly reservation touches
    it, or when hourly and half-day bookings cover ``full_day_threshold`` or
    more distinct hours. Pending, completed and cancelled reservations are
    ignored. The result depends only on the arguments.
    """
    if range_from > range_to:
        raise BookingValidationError("range_from must be on or before range_to")

    tz = ZoneInfo(timezone)
    relevant = sorted(
        (r for r in occupying(reservations) if r.space_id == space_id),
        key=lambda r: reservation_sort_key(r, tz),
    )

    by_day: dict[date, list[ReservationSnapshot]] = {}
    hours_by_day: dict[date, set[int]] = {}
    for reservation in relevant:
        for day in occupied_days(
            reservation, tz, clip_from=range_from, clip_to=range_to
        ):
            by_day.setdefault(day, []).append(reservation)
            if reservation.pricing_type in HOURLY_TYPES:
                hours_by_day.setdefault(day, set()).update(
                    occupied_hours(reservation, day, tz)
                )

    days: list[AvailabilityDay] = []
    slots: list[BookedSlot] = []
    for day in iter_days(range_from, range_to):
        day_reservations = tuple(by_day.get(day, ()))
        booked_hours = tuple(sorted(hours_by_day.get(day, ())))
        full_day = any(r.pricing_type in FULL_DAY_TYPES for r in day_reservations)
        days.append(
            AvailabilityDay(
                date=day,
                reservations=day_reservations,
                booked_hours=booked_hours,
                available=not full_day and len(booked_hours) < full_day_threshold,
            )
        )
        slots.extend(BookedSlot(space_id=space_id, day=day, hour=h) for h in booked_hours)

    return AvailabilityIndex(
        space_id=space_id,
        range_from=range_from,
        range_to=range_to,
        timezone=timezone,
        days=tuple(days),
        slots=tuple(slots),
    )
