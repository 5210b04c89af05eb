"""Reservation management API."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from spacebook.api import deps
from spacebook.api.errors import booking_http_error
from spacebook.core.errors import UpstreamUnavailableError
from spacebook.models.reservation import Reservation, ReservationStatus
from spacebook.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationReschedule,
    ReservationStatusUpdate,
    ReservationUpdate,
    StatusTransitionRead,
    TickResponse,
)
from spacebook.services import booking_service, reservation_service
from spacebook.services.snapshots import ReservationSnapshot
from spacebook.services.status_service import TransitionGuard, effective_status
from spacebook.services.status_ticker import run_tick

router = APIRouter()


def _to_read(reservation: Reservation, now: datetime | None = None) -> ReservationRead:
    read = ReservationRead.model_validate(reservation)
    read.effective_status = effective_status(
        ReservationSnapshot.from_model(reservation), now or datetime.now(UTC)
    )
    return read


async def _get_reservation_or_404(
    session: AsyncSession, reservation_id: uuid.UUID
) -> Reservation:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    if reservation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found"
        )
    return reservation


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    space_id: uuid.UUID | None = None,
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = 50,
) -> list[ReservationRead]:
    reservations = await reservation_service.list_reservations(
        session,
        space_id=space_id,
        status=status_filter,
        skip=skip,
        limit=min(limit, 100),
    )
    now = datetime.now(UTC)
    return [_to_read(obj, now) for obj in reservations]


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    try:
        reservation = await booking_service.create_reservation(
            session,
            space_id=payload.space_id,
            pricing_type=payload.pricing_type,
            params=payload.to_params(),
            customer_name=payload.customer_name,
            notes=payload.notes,
        )
    except (ValueError, UpstreamUnavailableError) as exc:
        raise booking_http_error(exc) from exc
    return _to_read(reservation)


@router.post(
    "/tick",
    response_model=TickResponse,
    summary="Apply due status transitions once",
)
async def tick_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TickResponse:
    now = datetime.now(UTC)
    try:
        transitions = await run_tick(session, guard=TransitionGuard(), now=now)
    except UpstreamUnavailableError as exc:
        raise booking_http_error(exc) from exc
    return TickResponse(
        evaluated_at=now,
        transitions=[StatusTransitionRead.model_validate(item) for item in transitions],
    )


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    return _to_read(reservation)


@router.patch(
    "/{reservation_id}", response_model=ReservationRead, summary="Update reservation"
)
async def update_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    updated = await reservation_service.update_details(
        session, reservation=reservation, payload=payload
    )
    return _to_read(updated)


@router.post(
    "/{reservation_id}/reschedule",
    response_model=ReservationRead,
    summary="Move a reservation to a new window",
)
async def reschedule_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationReschedule,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await _get_reservation_or_404(session, reservation_id)
    try:
        updated = await booking_service.reschedule_reservation(
            session,
            reservation=reservation,
            params=payload.to_params(),
            pricing_type=payload.pricing_type,
        )
    except (ValueError, UpstreamUnavailableError) as exc:
        raise booking_http_error(exc) from exc
    return _to_read(updated)


@router.post(
    "/{reservation_id}/status",
    response_model=ReservationRead,
    summary="Confirm, cancel or otherwise move a reservation",
)
async def update_reservation_status(
    reservation_id: uuid.UUID,
    payload: ReservationStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    try:
        reservation = await booking_service.change_status(
            session, reservation_id=reservation_id, new_status=payload.status
        )
    except (ValueError, UpstreamUnavailableError) as exc:
        raise booking_http_error(exc) from exc
    return _to_read(reservation)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete reservation",
)
async def delete_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> None:
    reservation = await _get_reservation_or_404(session, reservation_id)
    await reservation_service.delete_reservation(session, reservation=reservation)
    return None
