"""Overlap detection between a candidate window and a reservation index."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

from spacebook.services.availability_service import (
    AvailabilityIndex,
    Window,
    occupied_days,
    occupied_hours,
    reservation_sort_key,
)
from spacebook.services.snapshots import FULL_DAY_TYPES, ReservationSnapshot


@dataclass(slots=True, frozen=True)
class ConflictResult:
    conflict: bool
    conflicting_reservations: tuple[ReservationSnapshot, ...]


def _collides(
    candidate: Window,
    existing: ReservationSnapshot,
    day: date,
    candidate_hours: frozenset[int],
    tz: ZoneInfo,
) -> bool:
    if candidate.pricing_type in FULL_DAY_TYPES:
        return True
    if existing.pricing_type in FULL_DAY_TYPES:
        return True
    return bool(occupied_hours(existing, day, tz) & candidate_hours)


def has_conflict(
    candidate: Window,
    index: AvailabilityIndex,
    *,
    exclude_reservation_id: uuid.UUID | None = None,
) -> ConflictResult:
    """Return every reservation in ``index`` that collides with ``candidate``.

    Hourly and half-day candidates collide with hour-based reservations whose
    occupied hours intersect theirs on a shared day, and with any daily,
    monthly or yearly reservation touching one of their days. Daily, monthly
    and yearly candidates collide with anything touching their date range.
    Results are ordered by start time, then id.
    """
    tz = ZoneInfo(index.timezone)
    found: dict[uuid.UUID, ReservationSnapshot] = {}
    for day in occupied_days(
        candidate, tz, clip_from=index.range_from, clip_to=index.range_to
    ):
        entry = index.day(day)
        if entry is None or not entry.reservations:
            continue
        candidate_hours = occupied_hours(candidate, day, tz)
        for existing in entry.reservations:
            if existing.id == exclude_reservation_id or existing.id in found:
                continue
            if _collides(candidate, existing, day, candidate_hours, tz):
                found[existing.id] = existing

    conflicting = tuple(
        sorted(found.values(), key=lambda r: reservation_sort_key(r, tz))
    )
    return ConflictResult(
        conflict=bool(conflicting), conflicting_reservations=conflicting
    )
