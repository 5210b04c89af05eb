"""Status lifecycle tests."""

from __future__ import annotations

import dataclasses
import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from spacebook.models.reservation import PricingType, ReservationStatus
from spacebook.services.availability_service import build_index
from spacebook.services.conflict_service import has_conflict
from spacebook.services.pricing_service import BookingParams, derive
from spacebook.services.snapshots import BookingCandidate, PriceTable, ReservationSnapshot
from spacebook.services.status_service import (
    StatusTransition,
    TransitionGuard,
    apply_transitions,
    effective_status,
    tick,
    validate_transition,
)

NOW = datetime(2024, 5, 6, 12, 0, tzinfo=UTC)


def _reservation(
    status: ReservationStatus,
    start: datetime,
    end: datetime,
) -> ReservationSnapshot:
    return ReservationSnapshot(
        id=uuid.uuid4(),
        space_id=uuid.uuid4(),
        pricing_type=PricingType.HOURLY,
        status=status,
        start_at=start,
        end_at=end,
    )


def test_confirmed_reservation_in_progress_becomes_active_once() -> None:
    reservation = _reservation(
        ReservationStatus.CONFIRMED, NOW - timedelta(hours=1), NOW + timedelta(hours=1)
    )
    guard = TransitionGuard()

    assert effective_status(reservation, NOW) is ReservationStatus.ACTIVE
    assert tick([reservation], NOW, guard) == [
        StatusTransition(
            reservation_id=reservation.id,
            from_status=ReservationStatus.CONFIRMED,
            to_status=ReservationStatus.ACTIVE,
        )
    ]
    assert tick([reservation], NOW, guard) == []
    assert guard.entries() == frozenset({(reservation.id, ReservationStatus.ACTIVE)})


@pytest.mark.parametrize("status", [ReservationStatus.CONFIRMED, ReservationStatus.ACTIVE])
def test_finished_reservation_completes(status: ReservationStatus) -> None:
    reservation = _reservation(status, NOW - timedelta(hours=3), NOW - timedelta(hours=1))
    assert effective_status(reservation, NOW) is ReservationStatus.COMPLETED


def test_end_instant_itself_is_not_completed() -> None:
    reservation = _reservation(ReservationStatus.ACTIVE, NOW - timedelta(hours=1), NOW)
    assert effective_status(reservation, NOW) is ReservationStatus.ACTIVE


def test_start_instant_activates() -> None:
    reservation = _reservation(ReservationStatus.CONFIRMED, NOW, NOW + timedelta(hours=1))
    assert effective_status(reservation, NOW) is ReservationStatus.ACTIVE


@pytest.mark.parametrize(
    "status",
    [ReservationStatus.PENDING, ReservationStatus.CANCELLED, ReservationStatus.COMPLETED],
)
def test_other_statuses_never_move_on_their_own(status: ReservationStatus) -> None:
    reservation = _reservation(status, NOW - timedelta(hours=3), NOW - timedelta(hours=1))
    assert effective_status(reservation, NOW) is status
    assert tick([reservation], NOW, TransitionGuard()) == []


def test_naive_times_are_read_as_utc() -> None:
    reservation = _reservation(
        ReservationStatus.CONFIRMED,
        datetime(2024, 5, 6, 11, 0),
        datetime(2024, 5, 6, 13, 0),
    )
    assert effective_status(reservation, NOW) is ReservationStatus.ACTIVE


def test_invalidate_allows_reemission() -> None:
    reservation = _reservation(
        ReservationStatus.CONFIRMED, NOW - timedelta(hours=1), NOW + timedelta(hours=1)
    )
    guard = TransitionGuard()
    tick([reservation], NOW, guard)
    guard.invalidate()

    assert len(guard) == 0
    assert len(tick([reservation], NOW, guard)) == 1


def test_validate_transition_rules() -> None:
    validate_transition(ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
    validate_transition(ReservationStatus.ACTIVE, ReservationStatus.CANCELLED)
    validate_transition(ReservationStatus.COMPLETED, ReservationStatus.COMPLETED)
    with pytest.raises(ValueError):
        validate_transition(ReservationStatus.COMPLETED, ReservationStatus.ACTIVE)
    with pytest.raises(ValueError):
        validate_transition(ReservationStatus.CANCELLED, ReservationStatus.CONFIRMED)
    with pytest.raises(ValueError):
        validate_transition(ReservationStatus.PENDING, ReservationStatus.ACTIVE)


@pytest.mark.asyncio
async def test_failed_apply_is_retried_on_next_tick() -> None:
    reservation = _reservation(
        ReservationStatus.CONFIRMED, NOW - timedelta(hours=1), NOW + timedelta(hours=1)
    )
    guard = TransitionGuard()
    calls: list[StatusTransition] = []

    async def failing(transition: StatusTransition) -> None:
        calls.append(transition)
        raise RuntimeError("database is locked")

    applied = await apply_transitions(tick([reservation], NOW, guard), failing, guard)
    assert applied == []
    assert not guard.seen(reservation.id, ReservationStatus.ACTIVE)

    async def succeeding(transition: StatusTransition) -> None:
        calls.append(transition)

    applied = await apply_transitions(tick([reservation], NOW, guard), succeeding, guard)
    assert [item.to_status for item in applied] == [ReservationStatus.ACTIVE]
    assert len(calls) == 2
    assert guard.seen(reservation.id, ReservationStatus.ACTIVE)


PRICES = PriceTable(
    daily=Decimal("250"), monthly=Decimal("4000"), yearly=Decimal("40000")
)


def _booked(
    pricing_type: PricingType,
    params: BookingParams,
    *,
    timezone: str = "UTC",
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> ReservationSnapshot:
    derived = derive(PRICES, pricing_type, params, timezone=timezone)
    return ReservationSnapshot(
        id=uuid.uuid4(),
        space_id=uuid.uuid4(),
        pricing_type=derived.pricing_type,
        status=status,
        start_at=derived.start,
        end_at=derived.end,
        timezone=timezone,
    )


@pytest.mark.parametrize(
    ("pricing_type", "params", "last_day_instant", "first_free_instant"),
    [
        (
            PricingType.DAILY,
            BookingParams(start=date(2024, 5, 1), end=date(2024, 5, 1)),
            datetime(2024, 5, 1, 23, 59, tzinfo=UTC),
            datetime(2024, 5, 2, 0, 0, tzinfo=UTC),
        ),
        (
            PricingType.DAILY,
            BookingParams(start=date(2024, 5, 1), end=date(2024, 5, 3)),
            datetime(2024, 5, 3, 12, 0, tzinfo=UTC),
            datetime(2024, 5, 4, 0, 0, tzinfo=UTC),
        ),
        (
            PricingType.MONTHLY,
            BookingParams(start=date(2024, 3, 1), month_count=2),
            datetime(2024, 4, 30, 18, 0, tzinfo=UTC),
            datetime(2024, 5, 1, 0, 0, tzinfo=UTC),
        ),
        (
            PricingType.YEARLY,
            BookingParams(start=date(2024, 1, 1), year_count=1),
            datetime(2024, 12, 31, 23, 0, tzinfo=UTC),
            datetime(2025, 1, 1, 0, 0, tzinfo=UTC),
        ),
    ],
)
def test_date_granular_booking_runs_through_its_last_day(
    pricing_type: PricingType,
    params: BookingParams,
    last_day_instant: datetime,
    first_free_instant: datetime,
) -> None:
    reservation = _booked(pricing_type, params)

    assert effective_status(reservation, last_day_instant) is ReservationStatus.ACTIVE
    assert effective_status(reservation, first_free_instant) is ReservationStatus.COMPLETED
    assert reservation.occupied_until == first_free_instant


def test_last_day_follows_space_timezone() -> None:
    reservation = _booked(
        PricingType.DAILY,
        BookingParams(start=date(2024, 5, 1), end=date(2024, 5, 1)),
        timezone="Europe/Berlin",
    )
    # Berlin is UTC+2 in May: the day runs 2024-04-30T22:00Z..2024-05-01T22:00Z.
    assert effective_status(
        reservation, datetime(2024, 5, 1, 21, 59, tzinfo=UTC)
    ) is ReservationStatus.ACTIVE
    assert effective_status(
        reservation, datetime(2024, 5, 1, 22, 0, tzinfo=UTC)
    ) is ReservationStatus.COMPLETED


def test_hourly_occupied_until_is_its_end() -> None:
    reservation = _reservation(ReservationStatus.CONFIRMED, NOW, NOW + timedelta(hours=2))
    assert reservation.occupied_until == NOW + timedelta(hours=2)


def test_booked_day_stays_blocked_after_tick() -> None:
    booking = _booked(
        PricingType.DAILY, BookingParams(start=date(2024, 5, 1), end=date(2024, 5, 1))
    )
    now = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    transitions = tick([booking], now, TransitionGuard())
    assert [item.to_status for item in transitions] == [ReservationStatus.ACTIVE]

    after_tick = dataclasses.replace(booking, status=transitions[0].to_status)
    index = build_index(
        after_tick.space_id, [after_tick], date(2024, 5, 1), date(2024, 5, 1)
    )
    assert not index.is_date_available(date(2024, 5, 1))

    candidate = BookingCandidate(
        pricing_type=PricingType.HOURLY,
        start_at=datetime(2024, 5, 1, 13, 0, tzinfo=UTC),
        end_at=datetime(2024, 5, 1, 15, 0, tzinfo=UTC),
    )
    assert has_conflict(candidate, index).conflicting_reservations == (after_tick,)
