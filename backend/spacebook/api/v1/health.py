"""Health check endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spacebook.api import deps
from spacebook.core.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _ticker_state(request: Request) -> str:
    ticker = getattr(request.app.state, "status_ticker", None)
    if ticker is None:
        return "disabled"
    return "running" if ticker.running else "stopped"


@router.get("", summary="Service health status")
async def healthcheck(
    request: Request,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> dict[str, Any]:
    """Report reservation store reachability and status ticker state."""
    settings = get_settings()
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the reservation store")
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": settings.app_name,
        "timestamp": datetime.now(UTC).isoformat(),
        "database": database,
        "status_ticker": _ticker_state(request),
        "default_timezone": settings.default_timezone,
        "full_day_hour_threshold": settings.full_day_hour_threshold,
    }
