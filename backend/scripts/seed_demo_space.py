"""Seed a demo coworking space with weekday hours and a full price table."""
from __future__ import annotations

import asyncio
from datetime import time
from decimal import Decimal

from sqlalchemy import select

from spacebook.db.session import get_sessionmaker
from spacebook.models.space import Space, SpaceHour

DEMO_NAME = "Demo Coworking Loft"
WEEKDAY_HOURS = (time(8, 0), time(20, 0))
SATURDAY_HOURS = (time(10, 0), time(16, 0))


def _weekly_hours() -> list[SpaceHour]:
    hours = [SpaceHour(day_of_week=0, is_open=False)]
    for day in range(1, 6):
        hours.append(
            SpaceHour(
                day_of_week=day,
                is_open=True,
                open_time=WEEKDAY_HOURS[0],
                close_time=WEEKDAY_HOURS[1],
            )
        )
    hours.append(
        SpaceHour(
            day_of_week=6,
            is_open=True,
            open_time=SATURDAY_HOURS[0],
            close_time=SATURDAY_HOURS[1],
        )
    )
    return hours


async def seed_demo_space(timezone: str = "UTC") -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing = await session.execute(select(Space).where(Space.name == DEMO_NAME))
        if existing.scalar_one_or_none() is not None:
            print(f"{DEMO_NAME!r} already exists.")
            return
        space = Space(
            name=DEMO_NAME,
            timezone=timezone,
            hourly_rate=Decimal("15.00"),
            halfday_rate=Decimal("60.00"),
            daily_rate=Decimal("100.00"),
            monthly_rate=Decimal("1500.00"),
            yearly_rate=Decimal("15000.00"),
        )
        space.hours = _weekly_hours()
        session.add(space)
        await session.commit()
        print(f"Seeded space {space.id}.")


def main() -> None:
    asyncio.run(seed_demo_space())


if __name__ == "__main__":
    main()
