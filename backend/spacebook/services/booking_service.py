"""Booking orchestration: availability, candidate validation and persistence.

Reads the space and its occupying reservations in the caller's session, then
hands frozen snapshots to the pure engine modules.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from spacebook.core.config import get_settings
from spacebook.core.errors import BookingRejectedError, BookingValidationError
from spacebook.models.reservation import (
    PricingType,
    Reservation,
    ReservationStatus,
)
from spacebook.models.space import Space
from spacebook.services import reservation_service, space_service
from spacebook.services.availability_service import (
    AvailabilityIndex,
    build_index,
    occupied_days,
)
from spacebook.services.conflict_service import has_conflict
from spacebook.services.operating_hours_service import closed_days, violations_for
from spacebook.services.pricing_service import (
    BookingParams,
    DerivedBooking,
    PricingQuote,
    derive,
    quote,
)
from spacebook.services.snapshots import (
    BookingCandidate,
    Overlap,
    ReservationSnapshot,
    SpaceSnapshot,
    Violation,
    coerce_utc,
    iter_days,
)
from spacebook.services.status_service import TERMINAL_STATUSES

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AvailabilityReport:
    index: AvailabilityIndex
    closed_days: tuple[date, ...]


@dataclass(slots=True, frozen=True)
class CandidateValidation:
    """Outcome of checking a proposed booking without persisting it."""

    ok: bool
    derived: DerivedBooking
    violations: tuple[Violation, ...]
    quote: PricingQuote | None = None


def _utc_bounds(first: date, last: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    start = datetime.combine(first, time.min, tzinfo=tz)
    end = datetime.combine(last + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


async def _load_space(session: AsyncSession, space_id: uuid.UUID) -> Space:
    space = await space_service.get_space(session, space_id=space_id)
    if space is None:
        raise ValueError("Space not found")
    return space


async def _occupying_snapshots(
    session: AsyncSession,
    *,
    space: SpaceSnapshot,
    first: date,
    last: date,
) -> list[ReservationSnapshot]:
    range_start, range_end = _utc_bounds(first, last, space.schedule.tz)
    rows = await reservation_service.list_space_reservations(
        session,
        space_id=space.id,
        range_start=range_start,
        range_end=range_end,
    )
    return [
        ReservationSnapshot.from_model(row, timezone=space.schedule.timezone)
        for row in rows
    ]


async def check_availability(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    range_from: date,
    range_to: date,
    full_day_threshold: int | None = None,
) -> AvailabilityReport:
    """Build the reservation index of a space over an inclusive date range."""
    settings = get_settings()
    if range_from > range_to:
        raise BookingValidationError("range_from must be on or before range_to")
    if (range_to - range_from).days + 1 > settings.availability_max_days:
        raise BookingValidationError(
            f"Availability range cannot exceed {settings.availability_max_days} days"
        )
    threshold = full_day_threshold or settings.full_day_hour_threshold

    space = SpaceSnapshot.from_model(await _load_space(session, space_id))
    reservations = await _occupying_snapshots(
        session, space=space, first=range_from, last=range_to
    )
    index = build_index(
        space.id,
        reservations,
        range_from,
        range_to,
        timezone=space.schedule.timezone,
        full_day_threshold=threshold,
    )
    closed = closed_days(space.schedule, iter_days(range_from, range_to))
    return AvailabilityReport(index=index, closed_days=tuple(closed))


async def validate_candidate(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    pricing_type: PricingType,
    params: BookingParams,
    exclude_reservation_id: uuid.UUID | None = None,
) -> CandidateValidation:
    """Derive the booking, then check operating hours and overlaps.

    Calendar and overlap problems come back as violations; malformed input
    raises ``BookingValidationError``.
    """
    space = SpaceSnapshot.from_model(await _load_space(session, space_id))
    return await _validate(
        session,
        space=space,
        pricing_type=pricing_type,
        params=params,
        exclude_reservation_id=exclude_reservation_id,
    )


async def _find_overlap(
    session: AsyncSession,
    *,
    space: SpaceSnapshot,
    candidate: BookingCandidate,
    exclude_reservation_id: uuid.UUID | None,
) -> Overlap | None:
    days = occupied_days(candidate, space.schedule.tz)
    reservations = await _occupying_snapshots(
        session, space=space, first=days[0], last=days[-1]
    )
    index = build_index(
        space.id,
        reservations,
        days[0],
        days[-1],
        timezone=space.schedule.timezone,
        full_day_threshold=get_settings().full_day_hour_threshold,
    )
    conflict = has_conflict(
        candidate, index, exclude_reservation_id=exclude_reservation_id
    )
    if not conflict.conflict:
        return None
    return Overlap(conflicting_reservations=conflict.conflicting_reservations)


async def _validate(
    session: AsyncSession,
    *,
    space: SpaceSnapshot,
    pricing_type: PricingType,
    params: BookingParams,
    exclude_reservation_id: uuid.UUID | None,
) -> CandidateValidation:
    settings = get_settings()
    derived = derive(
        space.pricing, pricing_type, params, timezone=space.schedule.timezone
    )
    candidate = BookingCandidate(
        pricing_type=derived.pricing_type,
        start_at=derived.start,
        end_at=derived.end,
        half_day_session=derived.session,
    )
    violations: list[Violation] = list(
        violations_for(
            derived.pricing_type,
            space.schedule,
            derived.start,
            derived.end,
            session=derived.session,
        )
    )
    overlap = await _find_overlap(
        session,
        space=space,
        candidate=candidate,
        exclude_reservation_id=exclude_reservation_id,
    )
    if overlap is not None:
        violations.append(overlap)
    return CandidateValidation(
        ok=not violations,
        derived=derived,
        violations=tuple(violations),
        quote=quote(derived, tax_rate_percent=settings.tax_rate_percent),
    )


def _require_bookable(space: SpaceSnapshot, validation: CandidateValidation) -> None:
    if not space.is_active:
        raise BookingValidationError("Space is not accepting reservations")
    if not validation.derived.price_available:
        raise BookingValidationError(
            f"Price unavailable for {validation.derived.pricing_type.value} bookings"
        )
    if not validation.ok:
        raise BookingRejectedError(validation.violations)


async def create_reservation(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    pricing_type: PricingType,
    params: BookingParams,
    customer_name: str,
    notes: str | None = None,
) -> Reservation:
    """Validate and persist a new pending reservation."""
    space = SpaceSnapshot.from_model(await _load_space(session, space_id))
    validation = await _validate(
        session,
        space=space,
        pricing_type=pricing_type,
        params=params,
        exclude_reservation_id=None,
    )
    _require_bookable(space, validation)

    derived = validation.derived
    reservation = Reservation(
        space_id=space.id,
        customer_name=customer_name,
        pricing_type=derived.pricing_type,
        half_day_session=derived.session,
        status=ReservationStatus.PENDING,
        start_at=coerce_utc(derived.start),
        end_at=coerce_utc(derived.end),
        base_price=derived.base_price,
        notes=notes,
    )
    session.add(reservation)
    await session.commit()
    await session.refresh(reservation)
    logger.info(
        "Created %s reservation %s on space %s",
        derived.pricing_type.value,
        reservation.id,
        space.id,
    )
    return reservation


async def reschedule_reservation(
    session: AsyncSession,
    *,
    reservation: Reservation,
    params: BookingParams,
    pricing_type: PricingType | None = None,
) -> Reservation:
    """Move a reservation to a new window, ignoring its own current slot."""
    if reservation.status in TERMINAL_STATUSES:
        raise ValueError(
            f"Cannot reschedule a {reservation.status.value} reservation"
        )
    space = SpaceSnapshot.from_model(await _load_space(session, reservation.space_id))
    validation = await _validate(
        session,
        space=space,
        pricing_type=pricing_type or reservation.pricing_type,
        params=params,
        exclude_reservation_id=reservation.id,
    )
    _require_bookable(space, validation)

    derived = validation.derived
    reservation.pricing_type = derived.pricing_type
    reservation.half_day_session = derived.session
    reservation.start_at = coerce_utc(derived.start)
    reservation.end_at = coerce_utc(derived.end)
    reservation.base_price = derived.base_price
    await session.commit()
    await session.refresh(reservation)
    logger.info("Rescheduled reservation %s", reservation.id)
    return reservation


async def change_status(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    new_status: ReservationStatus,
) -> Reservation:
    """Apply an external status action such as confirm or cancel.

    Pending reservations do not hold their slot, so confirming one checks
    again that no occupying reservation took the window in the meantime.
    """
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    if reservation is None:
        raise ValueError("Reservation not found")
    if (
        new_status is ReservationStatus.CONFIRMED
        and reservation.status is ReservationStatus.PENDING
    ):
        space = SpaceSnapshot.from_model(
            await _load_space(session, reservation.space_id)
        )
        candidate = BookingCandidate(
            pricing_type=reservation.pricing_type,
            start_at=coerce_utc(reservation.start_at),
            end_at=coerce_utc(reservation.end_at),
            half_day_session=reservation.half_day_session,
        )
        overlap = await _find_overlap(
            session,
            space=space,
            candidate=candidate,
            exclude_reservation_id=reservation.id,
        )
        if overlap is not None:
            raise BookingRejectedError((overlap,))
    return await reservation_service.apply_status_transition(
        session, reservation_id=reservation_id, new_status=new_status
    )
