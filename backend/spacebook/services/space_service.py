"""Space management and weekly hours persistence."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from spacebook.core.config import get_settings
from spacebook.core.errors import UpstreamUnavailableError
from spacebook.models.space import Space, SpaceHour
from spacebook.schemas.space import (
    DayScheduleBase,
    SpaceCreate,
    SpaceHoursReplace,
    SpaceUpdate,
)

logger = logging.getLogger(__name__)


def _base_space_query():
    return select(Space).options(selectinload(Space.hours)).order_by(Space.name.asc())


def _build_hours(entries: Sequence[DayScheduleBase]) -> list[SpaceHour]:
    return [
        SpaceHour(
            day_of_week=entry.day_of_week,
            is_open=entry.is_open,
            open_time=entry.open_time if entry.is_open else None,
            close_time=entry.close_time if entry.is_open else None,
        )
        for entry in sorted(entries, key=lambda item: item.day_of_week)
    ]


async def list_spaces(
    session: AsyncSession,
    *,
    include_inactive: bool = True,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Space]:
    stmt = _base_space_query()
    if not include_inactive:
        stmt = stmt.where(Space.is_active.is_(True))
    result = await session.execute(stmt.offset(skip).limit(limit))
    return result.scalars().unique().all()


async def get_space(session: AsyncSession, *, space_id: uuid.UUID) -> Space | None:
    """Load a space with its hours; store failures surface as upstream errors."""
    stmt = _base_space_query().where(Space.id == space_id)
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Failed to load space %s", space_id)
        raise UpstreamUnavailableError("Space store unavailable") from exc
    return result.scalars().unique().one_or_none()


async def create_space(session: AsyncSession, *, payload: SpaceCreate) -> Space:
    data = payload.model_dump(exclude={"hours"})
    if "timezone" not in payload.model_fields_set:
        data["timezone"] = get_settings().default_timezone
    space = Space(**data)
    space.hours = _build_hours(payload.hours)
    session.add(space)
    await session.commit()
    logger.info("Created space %s (%s)", space.id, space.name)
    return await _reload(session, space.id)


async def update_space(
    session: AsyncSession,
    *,
    space: Space,
    payload: SpaceUpdate,
) -> Space:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(space, key, value)
    await session.commit()
    return await _reload(session, space.id)


async def replace_hours(
    session: AsyncSession,
    *,
    space: Space,
    payload: SpaceHoursReplace,
) -> Space:
    """Swap the full weekly schedule; days left out count as unset."""
    space.hours.clear()
    await session.flush()
    space.hours.extend(_build_hours(payload.hours))
    if payload.always_open is not None:
        space.always_open = payload.always_open
    await session.commit()
    return await _reload(session, space.id)


async def delete_space(session: AsyncSession, *, space: Space) -> None:
    await session.delete(space)
    await session.commit()
    logger.info("Deleted space %s", space.id)


async def _reload(session: AsyncSession, space_id: uuid.UUID) -> Space:
    session.expire_all()
    space = await get_space(session, space_id=space_id)
    if space is None:  # pragma: no cover - row was just written
        raise ValueError("Space not found")
    return space
