"""Operating hours gate for spaces.

Answers whether an instant, a day or a booking window falls inside a space's
weekly schedule. Calendar problems are returned as ``ClosedDay`` and
``OutsideHours`` values so callers can show why a date is blocked.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from spacebook.models.reservation import HalfDaySession, PricingType
from spacebook.services.snapshots import (
    HALF_DAY_SESSIONS,
    MINUTES_PER_DAY,
    WEEKDAY_NAMES,
    ClosedDay,
    DaySchedule,
    OperatingSchedule,
    OutsideHours,
    SpaceSnapshot,
    Violation,
    iter_days,
    minutes_of,
    to_local,
    weekday_index,
)

# Long-term leases are not rejected for weekly closures.
_EXEMPT_TYPES = frozenset({PricingType.MONTHLY, PricingType.YEARLY})


@dataclass(slots=True, frozen=True)
class OperationalStatus:
    """Whether a space is open right now and accepting walk-ins."""

    is_operational: bool
    effective_status: bool
    reason: str | None


def day_label(day: date) -> str:
    return WEEKDAY_NAMES[weekday_index(day)].capitalize()


def _open_entry(schedule: OperatingSchedule, day: date) -> DaySchedule | None:
    entry = schedule.for_day(day)
    if entry is None or not entry.is_open:
        return None
    return entry


def is_open_on_day(schedule: OperatingSchedule, day: date) -> bool:
    if schedule.always_open:
        return True
    return _open_entry(schedule, day) is not None


def is_open_at(schedule: OperatingSchedule, instant: datetime) -> bool:
    """Return True when ``instant`` is inside ``[open_time, close_time)``."""
    if schedule.always_open:
        return True
    local = to_local(instant, schedule.tz)
    entry = _open_entry(schedule, local.date())
    if entry is None:
        return False
    return entry.open_minutes <= minutes_of(local.time()) < entry.close_minutes


def _end_position(start: datetime, end: datetime) -> tuple[date, int]:
    # An end at local midnight closes the previous day at 24:00.
    if end.time() == time.min and end.date() > start.date():
        return end.date() - timedelta(days=1), MINUTES_PER_DAY
    minutes = minutes_of(end.time())
    if end.second or end.microsecond:
        minutes += 1
    return end.date(), minutes


def check_window(
    schedule: OperatingSchedule, start: datetime, end: datetime
) -> list[Violation]:
    """Check that both ends of an hourly or half-day window are in hours.

    The start must satisfy ``open <= start < close`` on its day and the end
    ``open < end <= close`` on its own day.
    """
    if schedule.always_open:
        return []
    tz = schedule.tz
    local_start = to_local(start, tz)
    local_end = to_local(end, tz)

    violations: list[Violation] = []
    start_day = local_start.date()
    entry = _open_entry(schedule, start_day)
    if entry is None:
        violations.append(ClosedDay(day=start_day, label=day_label(start_day)))
    elif not (
        entry.open_minutes <= minutes_of(local_start.time()) < entry.close_minutes
    ):
        violations.append(OutsideHours(day=start_day, window=entry.window_label))

    end_day, end_minutes = _end_position(local_start, local_end)
    entry = _open_entry(schedule, end_day)
    if entry is None:
        violations.append(ClosedDay(day=end_day, label=day_label(end_day)))
    elif not (entry.open_minutes < end_minutes <= entry.close_minutes):
        violations.append(OutsideHours(day=end_day, window=entry.window_label))

    return list(dict.fromkeys(violations))


def check_date_range(
    schedule: OperatingSchedule, first_day: date, last_day: date
) -> list[Violation]:
    """Report every closed day in the inclusive range."""
    if schedule.always_open:
        return []
    return [
        ClosedDay(day=day, label=day_label(day))
        for day in iter_days(first_day, last_day)
        if not is_open_on_day(schedule, day)
    ]


def check_sessions(
    schedule: OperatingSchedule,
    session: HalfDaySession,
    first_day: date,
    last_day: date,
) -> list[Violation]:
    """Check a half-day session on every day it repeats."""
    if schedule.always_open:
        return []
    start_hour, end_hour = HALF_DAY_SESSIONS[session]
    violations: list[Violation] = []
    for day in iter_days(first_day, last_day):
        midnight = datetime.combine(day, time.min)
        violations.extend(
            check_window(
                schedule,
                midnight + timedelta(hours=start_hour),
                midnight + timedelta(hours=end_hour),
            )
        )
    return list(dict.fromkeys(violations))


def violations_for(
    pricing_type: PricingType,
    schedule: OperatingSchedule,
    start: datetime,
    end: datetime,
    session: HalfDaySession | None = None,
) -> list[Violation]:
    """Apply the per-pricing-type closure policy to a booking window."""
    if pricing_type in _EXEMPT_TYPES:
        return []
    if pricing_type is PricingType.HALFDAY and session is not None:
        tz = schedule.tz
        local_start = to_local(start, tz)
        last_day, _ = _end_position(local_start, to_local(end, tz))
        return check_sessions(schedule, session, local_start.date(), last_day)
    if pricing_type is PricingType.DAILY:
        tz = schedule.tz
        return check_date_range(
            schedule, to_local(start, tz).date(), to_local(end, tz).date()
        )
    return check_window(schedule, start, end)


def closed_days(schedule: OperatingSchedule, days: Iterable[date]) -> list[date]:
    """Return the subset of ``days`` on which the space is closed."""
    return [day for day in days if not is_open_on_day(schedule, day)]


def operational_status(space: SpaceSnapshot, now: datetime) -> OperationalStatus:
    is_operational = is_open_at(space.schedule, now)
    return OperationalStatus(
        is_operational=is_operational,
        effective_status=space.is_active and is_operational,
        reason=None if is_operational else "outside_operational_hours",
    )
