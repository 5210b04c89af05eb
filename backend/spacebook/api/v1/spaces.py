"""Space, weekly hours and availability endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from spacebook.api import deps
from spacebook.api.errors import booking_http_error
from spacebook.core.errors import UpstreamUnavailableError
from spacebook.models.space import Space
from spacebook.schemas.availability import (
    AvailabilityDayRead,
    AvailabilityResponse,
    BookedSlotRead,
    CandidateRequest,
    CandidateValidationResponse,
    DerivedBookingRead,
    ReservationBrief,
    ViolationRead,
)
from spacebook.schemas.space import (
    OperationalStatusRead,
    SpaceCreate,
    SpaceHoursReplace,
    SpaceRead,
    SpaceUpdate,
)
from spacebook.services import booking_service, space_service
from spacebook.services.operating_hours_service import operational_status
from spacebook.services.snapshots import SpaceSnapshot

router = APIRouter()


async def _get_space_or_404(session: AsyncSession, space_id: uuid.UUID) -> Space:
    try:
        space = await space_service.get_space(session, space_id=space_id)
    except UpstreamUnavailableError as exc:
        raise booking_http_error(exc) from exc
    if space is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Space not found")
    return space


@router.get("", response_model=list[SpaceRead], summary="List spaces")
async def list_spaces(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    include_inactive: bool = True,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[SpaceRead]:
    spaces = await space_service.list_spaces(
        session, include_inactive=include_inactive, skip=skip, limit=limit
    )
    return [SpaceRead.model_validate(space) for space in spaces]


@router.post(
    "",
    response_model=SpaceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create space",
)
async def create_space(
    payload: SpaceCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SpaceRead:
    space = await space_service.create_space(session, payload=payload)
    return SpaceRead.model_validate(space)


@router.get("/{space_id}", response_model=SpaceRead, summary="Get space")
async def get_space(
    space_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SpaceRead:
    space = await _get_space_or_404(session, space_id)
    return SpaceRead.model_validate(space)


@router.patch("/{space_id}", response_model=SpaceRead, summary="Update space")
async def update_space(
    space_id: uuid.UUID,
    payload: SpaceUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SpaceRead:
    space = await _get_space_or_404(session, space_id)
    updated = await space_service.update_space(session, space=space, payload=payload)
    return SpaceRead.model_validate(updated)


@router.delete(
    "/{space_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete space"
)
async def delete_space(
    space_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> None:
    space = await _get_space_or_404(session, space_id)
    await space_service.delete_space(session, space=space)
    return None


@router.put("/{space_id}/hours", response_model=SpaceRead, summary="Replace weekly hours")
async def replace_space_hours(
    space_id: uuid.UUID,
    payload: SpaceHoursReplace,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SpaceRead:
    space = await _get_space_or_404(session, space_id)
    updated = await space_service.replace_hours(session, space=space, payload=payload)
    return SpaceRead.model_validate(updated)


@router.get(
    "/{space_id}/availability",
    response_model=AvailabilityResponse,
    summary="Per-day availability and booked hour slots",
)
async def get_availability(
    space_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    range_from: date = Query(...),
    range_to: date = Query(...),
    full_day_threshold: int | None = Query(default=None, ge=1, le=24),
) -> AvailabilityResponse:
    try:
        report = await booking_service.check_availability(
            session,
            space_id=space_id,
            range_from=range_from,
            range_to=range_to,
            full_day_threshold=full_day_threshold,
        )
    except (ValueError, UpstreamUnavailableError) as exc:
        raise booking_http_error(exc) from exc

    index = report.index
    closed = set(report.closed_days)
    return AvailabilityResponse(
        space_id=index.space_id,
        range_from=index.range_from,
        range_to=index.range_to,
        timezone=index.timezone,
        days=[
            AvailabilityDayRead(
                day=entry.date,
                available=entry.available,
                closed=entry.date in closed,
                booked_hours=list(entry.booked_hours),
                reservations=[
                    ReservationBrief.model_validate(reservation)
                    for reservation in entry.reservations
                ],
            )
            for entry in index.days
        ],
        slots=[BookedSlotRead.model_validate(slot) for slot in index.slots],
    )


@router.post(
    "/{space_id}/validate",
    response_model=CandidateValidationResponse,
    summary="Validate a proposed booking without saving it",
)
async def validate_booking(
    space_id: uuid.UUID,
    payload: CandidateRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> CandidateValidationResponse:
    try:
        result = await booking_service.validate_candidate(
            session,
            space_id=space_id,
            pricing_type=payload.pricing_type,
            params=payload.to_params(),
            exclude_reservation_id=payload.exclude_reservation_id,
        )
    except (ValueError, UpstreamUnavailableError) as exc:
        raise booking_http_error(exc) from exc
    return CandidateValidationResponse(
        ok=result.ok,
        derived=DerivedBookingRead.model_validate(result.derived),
        violations=[ViolationRead.from_violation(v) for v in result.violations],
        quote=result.quote.to_dict() if result.quote is not None else None,
    )


@router.get(
    "/{space_id}/operational-status",
    response_model=OperationalStatusRead,
    summary="Whether the space is open right now",
)
async def get_operational_status(
    space_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> OperationalStatusRead:
    space = await _get_space_or_404(session, space_id)
    now = datetime.now(UTC)
    result = operational_status(SpaceSnapshot.from_model(space), now)
    return OperationalStatusRead(
        space_id=space.id,
        is_operational=result.is_operational,
        effective_status=result.effective_status,
        reason=result.reason,
        checked_at=now,
    )
