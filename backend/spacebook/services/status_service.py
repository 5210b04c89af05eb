"""Time-driven reservation status lifecycle.

Effective status is derived at read time from the stored status, the window
and ``now``. ``tick`` turns the difference into one-shot transition events,
guarded so the same ``(reservation, target)`` pair is emitted once until the
caller invalidates its guard after reloading from the store.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from spacebook.models.reservation import ReservationStatus
from spacebook.services.snapshots import FULL_DAY_TYPES, ReservationSnapshot, coerce_utc

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {
        ReservationStatus.ACTIVE,
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.ACTIVE: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
}


@dataclass(slots=True, frozen=True)
class StatusTransition:
    reservation_id: uuid.UUID
    from_status: ReservationStatus
    to_status: ReservationStatus


def validate_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if target == current:
        return
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(
            f"Invalid status transition from {current.value} to {target.value}"
        )


def effective_status(reservation: ReservationSnapshot, now: datetime) -> ReservationStatus:
    """Return the status the reservation should have at ``now``.

    Hourly and half-day windows complete once ``now`` passes ``end_at``.
    Date-granular ones stay booked through the whole of their last day.
    """
    status = reservation.status
    if status not in (ReservationStatus.CONFIRMED, ReservationStatus.ACTIVE):
        return status
    current = coerce_utc(now)
    if reservation.pricing_type in FULL_DAY_TYPES:
        finished = current >= reservation.occupied_until
    else:
        finished = current > coerce_utc(reservation.end_at)
    if finished:
        return ReservationStatus.COMPLETED
    if status is ReservationStatus.CONFIRMED and current >= coerce_utc(reservation.start_at):
        return ReservationStatus.ACTIVE
    return status


class TransitionGuard:
    """Remembers which derived transitions were already emitted."""

    def __init__(self) -> None:
        self._emitted: set[tuple[uuid.UUID, ReservationStatus]] = set()

    def seen(self, reservation_id: uuid.UUID, target: ReservationStatus) -> bool:
        return (reservation_id, target) in self._emitted

    def mark(self, reservation_id: uuid.UUID, target: ReservationStatus) -> None:
        self._emitted.add((reservation_id, target))

    def release(self, reservation_id: uuid.UUID, target: ReservationStatus) -> None:
        self._emitted.discard((reservation_id, target))

    def invalidate(self) -> None:
        """Forget everything; call after reloading reservations from the store."""
        self._emitted.clear()

    def entries(self) -> frozenset[tuple[uuid.UUID, ReservationStatus]]:
        return frozenset(self._emitted)

    def __len__(self) -> int:
        return len(self._emitted)


def tick(
    reservations: Iterable[ReservationSnapshot],
    now: datetime,
    guard: TransitionGuard,
) -> list[StatusTransition]:
    """Return the auto-transitions due at ``now`` that were not emitted yet."""
    transitions: list[StatusTransition] = []
    for reservation in reservations:
        target = effective_status(reservation, now)
        if target == reservation.status or guard.seen(reservation.id, target):
            continue
        guard.mark(reservation.id, target)
        transitions.append(
            StatusTransition(
                reservation_id=reservation.id,
                from_status=reservation.status,
                to_status=target,
            )
        )
    return transitions


async def apply_transitions(
    transitions: Iterable[StatusTransition],
    apply: Callable[[StatusTransition], Awaitable[object]],
    guard: TransitionGuard,
) -> list[StatusTransition]:
    """Persist transitions through ``apply``; failures are retried next tick."""
    applied: list[StatusTransition] = []
    for transition in transitions:
        try:
            await apply(transition)
        except Exception:
            logger.exception(
                "Failed to apply status %s -> %s for reservation %s",
                transition.from_status.value,
                transition.to_status.value,
                transition.reservation_id,
            )
            guard.release(transition.reservation_id, transition.to_status)
            continue
        applied.append(transition)
    return applied
