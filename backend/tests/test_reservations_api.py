"""Reservation API integration tests."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import AsyncClient

from spacebook.models import PricingType, Reservation, ReservationStatus

pytestmark = pytest.mark.asyncio


async def _book(
    client: AsyncClient, space_id: Any, **overrides: Any
) -> Any:
    payload = {
        "space_id": str(space_id),
        "pricing_type": "hourly",
        "customer_name": "Ada Lovelace",
        "start": "2030-06-03T10:00:00",
        "end": "2030-06-03T12:00:00",
    }
    payload.update(overrides)
    return await client.post("/api/v1/reservations", json=payload)


async def _confirm(client: AsyncClient, reservation_id: str) -> None:
    response = await client.post(
        f"/api/v1/reservations/{reservation_id}/status", json={"status": "confirmed"}
    )
    assert response.status_code == 200


async def test_reservation_lifecycle(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    create_resp = await _book(client, space_id, notes="Quarterly planning")
    assert create_resp.status_code == 201, create_resp.text
    reservation = create_resp.json()
    assert reservation["status"] == "pending"
    assert reservation["effective_status"] == "pending"
    assert float(reservation["base_price"]) == 100.0

    await _confirm(client, reservation["id"])

    get_resp = await client.get(f"/api/v1/reservations/{reservation['id']}")
    assert get_resp.status_code == 200
    assert get_resp.json()["status"] == "confirmed"

    patch_resp = await client.patch(
        f"/api/v1/reservations/{reservation['id']}", json={"notes": "Moved to room B"}
    )
    assert patch_resp.status_code == 200
    assert patch_resp.json()["notes"] == "Moved to room B"

    list_resp = await client.get(
        "/api/v1/reservations", params={"space_id": str(space_id), "status": "confirmed"}
    )
    assert [item["id"] for item in list_resp.json()] == [reservation["id"]]

    cancel_resp = await client.post(
        f"/api/v1/reservations/{reservation['id']}/status", json={"status": "cancelled"}
    )
    assert cancel_resp.status_code == 200
    assert cancel_resp.json()["status"] == "cancelled"

    reopen_resp = await client.post(
        f"/api/v1/reservations/{reservation['id']}/status", json={"status": "confirmed"}
    )
    assert reopen_resp.status_code == 400

    delete_resp = await client.delete(f"/api/v1/reservations/{reservation['id']}")
    assert delete_resp.status_code == 204
    missing = await client.get(f"/api/v1/reservations/{reservation['id']}")
    assert missing.status_code == 404


async def test_overlapping_booking_is_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    first = await _book(client, space_id, customer_name="First Co")
    await _confirm(client, first.json()["id"])

    response = await _book(
        client, space_id, start="2030-06-03T11:00:00", end="2030-06-03T13:00:00"
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert [item["kind"] for item in detail["violations"]] == ["overlap"]
    conflicting = detail["violations"][0]["conflicting_reservations"]
    assert [item["id"] for item in conflicting] == [first.json()["id"]]


async def test_pending_reservations_do_not_block(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    assert (await _book(client, space_id)).status_code == 201
    assert (await _book(client, space_id)).status_code == 201


async def test_morning_session_collides_with_hourly_booking(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]
    await client.put(f"/api/v1/spaces/{space_id}/hours", json={"always_open": True, "hours": []})

    hourly = await _book(
        client, space_id, start="2030-06-03T07:00:00", end="2030-06-03T08:00:00"
    )
    assert hourly.status_code == 201, hourly.text
    await _confirm(client, hourly.json()["id"])

    response = await _book(
        client,
        space_id,
        pricing_type="halfday",
        start=None,
        end=None,
        session_date="2030-06-03",
        session="morning",
    )
    assert response.status_code == 409
    assert response.json()["detail"]["violations"][0]["kind"] == "overlap"


@pytest.mark.parametrize(
    ("start", "end", "kind"),
    [
        ("2030-06-09T10:00:00", "2030-06-09T12:00:00", "closed_day"),
        ("2030-06-03T08:00:00", "2030-06-03T10:00:00", "outside_hours"),
        ("2030-06-03T16:00:00", "2030-06-03T18:00:00", "outside_hours"),
    ],
)
async def test_calendar_violations_are_rejected(
    app_context: dict[str, Any], start: str, end: str, kind: str
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await _book(client, app_context["space_id"], start=start, end=end)
    assert response.status_code == 409
    assert [item["kind"] for item in response.json()["detail"]["violations"]] == [kind]


async def test_booking_until_closing_time_is_accepted(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await _book(
        client,
        app_context["space_id"],
        start="2030-06-03T15:00:00",
        end="2030-06-03T17:00:00",
    )
    assert response.status_code == 201


async def test_daily_booking_over_sunday_is_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await _book(
        client,
        app_context["space_id"],
        pricing_type="daily",
        start="2030-06-07",
        end="2030-06-10",
    )
    assert response.status_code == 409
    violations = response.json()["detail"]["violations"]
    assert [(item["kind"], item["day"]) for item in violations] == [
        ("closed_day", "2030-06-09")
    ]


async def test_malformed_and_unpriced_bookings(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    backwards = await _book(
        client, space_id, start="2030-06-03T12:00:00", end="2030-06-03T10:00:00"
    )
    assert backwards.status_code == 422

    await client.patch(f"/api/v1/spaces/{space_id}", json={"hourly_rate": None})
    unpriced = await _book(client, space_id)
    assert unpriced.status_code == 422

    await client.patch(f"/api/v1/spaces/{space_id}", json={"is_active": False})
    inactive = await _book(client, space_id, pricing_type="daily", start="2030-06-04", end="2030-06-04")
    assert inactive.status_code == 422

    unknown = await _book(client, uuid.uuid4())
    assert unknown.status_code == 404


async def test_reschedule_ignores_own_slot(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    booking = await _book(client, space_id)
    reservation_id = booking.json()["id"]
    await _confirm(client, reservation_id)

    response = await client.post(
        f"/api/v1/reservations/{reservation_id}/reschedule",
        json={"start": "2030-06-03T11:00:00", "end": "2030-06-03T14:00:00"},
    )
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["start_at"].startswith("2030-06-03T11:00:00")
    assert float(payload["base_price"]) == 150.0
    assert payload["status"] == "confirmed"


async def test_tick_applies_due_transitions(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    sessionmaker = app_context["sessionmaker"]
    now = datetime.now(UTC)

    async with sessionmaker() as session:
        in_progress = Reservation(
            space_id=app_context["space_id"],
            customer_name="Now Co",
            pricing_type=PricingType.HOURLY,
            status=ReservationStatus.CONFIRMED,
            start_at=now - timedelta(hours=1),
            end_at=now + timedelta(hours=1),
        )
        finished = Reservation(
            space_id=app_context["space_id"],
            customer_name="Past Co",
            pricing_type=PricingType.HOURLY,
            status=ReservationStatus.ACTIVE,
            start_at=now - timedelta(hours=3),
            end_at=now - timedelta(hours=2),
        )
        session.add_all([in_progress, finished])
        await session.commit()
        ids = {in_progress.id: "active", finished.id: "completed"}

    before = await client.get(f"/api/v1/reservations/{in_progress.id}")
    assert before.json()["status"] == "confirmed"
    assert before.json()["effective_status"] == "active"

    response = await client.post("/api/v1/reservations/tick")
    assert response.status_code == 200
    transitions = {
        item["reservation_id"]: item["to_status"] for item in response.json()["transitions"]
    }
    assert transitions == {str(key): value for key, value in ids.items()}

    for reservation_id, expected in ids.items():
        stored = await client.get(f"/api/v1/reservations/{reservation_id}")
        assert stored.json()["status"] == expected

    again = await client.post("/api/v1/reservations/tick")
    assert again.json()["transitions"] == []


async def test_confirming_overlapping_pending_booking_is_rejected(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]

    first = await _book(client, space_id, customer_name="First Co")
    second = await _book(
        client,
        space_id,
        customer_name="Second Co",
        start="2030-06-03T11:00:00",
        end="2030-06-03T13:00:00",
    )
    assert first.status_code == second.status_code == 201

    await _confirm(client, first.json()["id"])
    response = await client.post(
        f"/api/v1/reservations/{second.json()['id']}/status",
        json={"status": "confirmed"},
    )
    assert response.status_code == 409
    violations = response.json()["detail"]["violations"]
    assert [item["kind"] for item in violations] == ["overlap"]
    assert [item["id"] for item in violations[0]["conflicting_reservations"]] == [
        first.json()["id"]
    ]

    stored = await client.get(f"/api/v1/reservations/{second.json()['id']}")
    assert stored.json()["status"] == "pending"

    cancel = await client.post(
        f"/api/v1/reservations/{second.json()['id']}/status",
        json={"status": "cancelled"},
    )
    assert cancel.status_code == 200


async def test_repeated_morning_sessions_leave_evenings_bookable(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    space_id = app_context["space_id"]
    await client.put(f"/api/v1/spaces/{space_id}/hours", json={"always_open": True, "hours": []})

    mornings = await _book(
        client,
        space_id,
        pricing_type="halfday",
        start=None,
        end=None,
        session_date="2030-06-03",
        end_date="2030-06-05",
        session="morning",
    )
    assert mornings.status_code == 201, mornings.text
    await _confirm(client, mornings.json()["id"])

    evening = await _book(
        client, space_id, start="2030-06-04T20:00:00", end="2030-06-04T21:00:00"
    )
    assert evening.status_code == 201, evening.text

    clash = await _book(
        client, space_id, start="2030-06-04T09:00:00", end="2030-06-04T10:00:00"
    )
    assert clash.status_code == 409
