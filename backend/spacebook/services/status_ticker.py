"""Fixed-cadence driver for the reservation status lifecycle."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spacebook.db.session import get_sessionmaker, session_scope
from spacebook.services import reservation_service
from spacebook.services.snapshots import ReservationSnapshot
from spacebook.services.status_service import (
    StatusTransition,
    TransitionGuard,
    apply_transitions,
    tick,
)

logger = logging.getLogger(__name__)


async def run_tick(
    session: AsyncSession,
    *,
    guard: TransitionGuard,
    now: datetime | None = None,
) -> list[StatusTransition]:
    """Reload lifecycle candidates, emit due transitions and persist them."""
    now = now or datetime.now(UTC)
    rows = await reservation_service.list_lifecycle_candidates(session)
    snapshots = [ReservationSnapshot.from_model(row) for row in rows]
    # Fresh rows reflect every write that succeeded so far.
    guard.invalidate()
    transitions = tick(snapshots, now, guard)
    if not transitions:
        return []

    async def _apply(transition: StatusTransition) -> None:
        try:
            await reservation_service.apply_status_transition(
                session,
                reservation_id=transition.reservation_id,
                new_status=transition.to_status,
            )
        except Exception:
            await session.rollback()
            raise

    applied = await apply_transitions(transitions, _apply, guard)
    if applied:
        logger.info("Applied %d of %d status transitions", len(applied), len(transitions))
    return applied


class StatusTicker:
    """Runs ``run_tick`` every ``interval_seconds`` in a background task.

    The guard is cleared after each reload, so it only suppresses duplicate
    transitions within one pass. Across passes the freshly loaded statuses
    and the no-op rule of ``apply_status_transition`` keep writes idempotent.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession] | None = None,
        *,
        interval_seconds: float = 30.0,
    ) -> None:
        self._sessionmaker = sessionmaker
        self.interval_seconds = interval_seconds
        self.guard = TransitionGuard()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: datetime | None = None) -> list[StatusTransition]:
        factory = self._sessionmaker or get_sessionmaker()
        async with session_scope(factory) as session:
            return await run_tick(session, guard=self.guard, now=now)

    async def run_forever(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Status tick failed; retrying in %.0fs", self.interval_seconds)
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run_forever(), name="status-ticker")
        logger.info("Status ticker started (every %.0fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Status ticker stopped")
