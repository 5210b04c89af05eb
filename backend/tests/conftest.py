"""Test fixtures for the space booking backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import time
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from spacebook.core.config import get_settings
from spacebook.db.base import Base
from spacebook.db.session import dispose_engine, get_sessionmaker
from spacebook.main import app
from spacebook.models import Space, SpaceHour

# Sunday=0; closed on Sundays.
WEEKLY_HOURS = {
    1: (time(9, 0), time(17, 0)),
    2: (time(9, 0), time(17, 0)),
    3: (time(9, 0), time(17, 0)),
    4: (time(9, 0), time(17, 0)),
    5: (time(9, 0), time(17, 0)),
    6: (time(10, 0), time(14, 0)),
}


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client and a seeded weekday studio."""
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        space = Space(
            name="Studio A",
            timezone="UTC",
            hourly_rate=Decimal("50.00"),
            halfday_rate=Decimal("150.00"),
            daily_rate=Decimal("250.00"),
            monthly_rate=Decimal("4000.00"),
            yearly_rate=Decimal("40000.00"),
        )
        space.hours = [
            SpaceHour(day_of_week=day, is_open=True, open_time=opens, close_time=closes)
            for day, (opens, closes) in WEEKLY_HOURS.items()
        ]
        space.hours.append(SpaceHour(day_of_week=0, is_open=False))
        session.add(space)
        await session.commit()

        context: dict[str, object] = {
            "space_id": space.id,
            "sessionmaker": sessionmaker,
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
