"""Reservation persistence helpers.

Reads used by the booking engine wrap database failures in
``UpstreamUnavailableError`` so callers can tell "no data" from "store down".
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spacebook.core.errors import UpstreamUnavailableError
from spacebook.models.reservation import Reservation, ReservationStatus
from spacebook.schemas.reservation import ReservationUpdate
from spacebook.services.snapshots import OCCUPYING_STATUSES, coerce_utc
from spacebook.services.status_service import validate_transition

logger = logging.getLogger(__name__)

_LIFECYCLE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.ACTIVE)


def _base_reservation_query():
    return select(Reservation).order_by(Reservation.start_at.asc(), Reservation.id.asc())


async def list_reservations(
    session: AsyncSession,
    *,
    space_id: uuid.UUID | None = None,
    status: ReservationStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Reservation]:
    stmt = _base_reservation_query()
    if space_id is not None:
        stmt = stmt.where(Reservation.space_id == space_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    result = await session.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Reservation | None:
    stmt = _base_reservation_query().where(Reservation.id == reservation_id)
    result = await session.execute(stmt)
    return result.scalars().one_or_none()


async def list_space_reservations(
    session: AsyncSession,
    *,
    space_id: uuid.UUID,
    range_start: datetime,
    range_end: datetime,
    occupying_only: bool = True,
) -> Sequence[Reservation]:
    """Reservations of a space whose window touches ``[range_start, range_end)``.

    The end bound is inclusive on the reservation side so date-granular rows
    ending at midnight of the first day are still returned.
    """
    stmt = _base_reservation_query().where(
        Reservation.space_id == space_id,
        Reservation.end_at >= coerce_utc(range_start),
        Reservation.start_at < coerce_utc(range_end),
    )
    if occupying_only:
        stmt = stmt.where(Reservation.status.in_(tuple(OCCUPYING_STATUSES)))
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Failed to list reservations for space %s", space_id)
        raise UpstreamUnavailableError("Reservation store unavailable") from exc
    return result.scalars().all()


async def list_lifecycle_candidates(session: AsyncSession) -> Sequence[Reservation]:
    """Confirmed and active reservations that may need an automatic transition."""
    stmt = _base_reservation_query().where(Reservation.status.in_(_LIFECYCLE_STATUSES))
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Failed to list lifecycle candidates")
        raise UpstreamUnavailableError("Reservation store unavailable") from exc
    return result.scalars().all()


async def apply_status_transition(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    new_status: ReservationStatus,
) -> Reservation:
    reservation = await get_reservation(session, reservation_id=reservation_id)
    if reservation is None:
        raise ValueError("Reservation not found")
    if reservation.status == new_status:
        return reservation
    validate_transition(reservation.status, new_status)
    previous = reservation.status
    reservation.status = new_status
    await session.commit()
    await session.refresh(reservation)
    logger.info(
        "Reservation %s moved from %s to %s",
        reservation.id,
        previous.value,
        new_status.value,
    )
    return reservation


async def update_details(
    session: AsyncSession,
    *,
    reservation: Reservation,
    payload: ReservationUpdate,
) -> Reservation:
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "customer_name" and value is None:
            continue
        setattr(reservation, key, value)
    await session.commit()
    await session.refresh(reservation)
    return reservation


async def delete_reservation(session: AsyncSession, *, reservation: Reservation) -> None:
    await session.delete(reservation)
    await session.commit()
