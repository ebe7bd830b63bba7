"""
TESTES DA API DE AGENDAMENTOS
==============================

CRUD, efeito no status do lead e sincronização com o Google Calendar (mock).
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from leadnurture.domain.entities import User
from leadnurture.domain.exceptions import CalendarSyncError
from leadnurture.infrastructure.database import async_session
from leadnurture.infrastructure.services import google_calendar_service
from tests.utils import create_lead_via_api

START = datetime(2031, 6, 15, 21, 30, tzinfo=timezone.utc)


async def connect_google(user_id: int) -> None:
    async with async_session() as session:
        user = await session.get(User, user_id)
        user.google_access_token = "ya29.token"
        user.google_refresh_token = "1//refresh"
        user.google_token_expiry = datetime.now(timezone.utc) + timedelta(hours=1)
        await session.commit()


async def create_appointment(client: AsyncClient, headers: dict, lead_id: int, **extra) -> dict:
    payload = {"lead_id": lead_id, "title": "Showing", "start_time": START.isoformat(), **extra}
    response = await client.post("/api/v1/appointments", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_appointment_sets_lead_status(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)

    appointment = await create_appointment(async_client, auth_headers, lead["id"], location="123 Main St")

    assert appointment["status"] == "scheduled"
    assert appointment["source"] == "manual"
    assert appointment["lead_name"] == "John Buyer"
    assert appointment["start_time"] == START.isoformat()
    # duração padrão: 60 minutos
    assert appointment["end_time"] == (START + timedelta(hours=1)).isoformat()
    assert appointment["google_event_id"] is None

    refreshed = (await async_client.get(f"/api/v1/leads/{lead['id']}", headers=auth_headers)).json()
    assert refreshed["status"] == "Appointment Set"

    notifications = (await async_client.get("/api/v1/notifications", headers=auth_headers)).json()
    assert notifications[0]["type"] == "appointment"
    assert notifications[0]["message"] == "Showing on June 15 at 2:30 PM"


@pytest.mark.asyncio
async def test_end_before_start_is_rejected(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)

    response = await async_client.post("/api/v1/appointments", json={
        "lead_id": lead["id"],
        "title": "Showing",
        "start_time": START.isoformat(),
        "end_time": (START - timedelta(minutes=30)).isoformat(),
    }, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "End time must be after start time"


@pytest.mark.asyncio
async def test_status_shortcuts(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    appointment = await create_appointment(async_client, auth_headers, lead["id"])

    confirmed = await async_client.post(f"/api/v1/appointments/{appointment['id']}/confirm", headers=auth_headers)
    completed = await async_client.post(f"/api/v1/appointments/{appointment['id']}/complete", headers=auth_headers)

    assert confirmed.json()["status"] == "confirmed"
    assert completed.json()["status"] == "completed"
    refreshed = (await async_client.get(f"/api/v1/leads/{lead['id']}", headers=auth_headers)).json()
    assert refreshed["status"] == "Converted"


@pytest.mark.asyncio
async def test_update_list_and_delete(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    first = await create_appointment(async_client, auth_headers, lead["id"])
    second = await create_appointment(
        async_client, auth_headers, lead["id"], start_time=(START + timedelta(days=2)).isoformat()
    )

    patched = await async_client.patch(
        f"/api/v1/appointments/{first['id']}", json={"title": "Second showing"}, headers=auth_headers
    )
    cancelled = await async_client.post(f"/api/v1/appointments/{second['id']}/cancel", headers=auth_headers)
    upcoming = await async_client.get("/api/v1/appointments/upcoming", headers=auth_headers)
    only_cancelled = await async_client.get(
        "/api/v1/appointments", params={"status": "cancelled"}, headers=auth_headers
    )
    by_lead = await async_client.get(f"/api/v1/appointments/lead/{lead['id']}", headers=auth_headers)

    assert patched.json()["title"] == "Second showing"
    assert cancelled.json()["status"] == "cancelled"
    assert [a["id"] for a in upcoming.json()] == [first["id"]]
    assert [a["id"] for a in only_cancelled.json()] == [second["id"]]
    assert len(by_lead.json()) == 2

    deleted = await async_client.delete(f"/api/v1/appointments/{first['id']}", headers=auth_headers)
    missing = await async_client.get(f"/api/v1/appointments/{first['id']}", headers=auth_headers)
    assert deleted.json() == {"success": True}
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_invalid_status_update(async_client: AsyncClient, auth_headers):
    lead = await create_lead_via_api(async_client, auth_headers)
    appointment = await create_appointment(async_client, auth_headers, lead["id"])

    response = await async_client.patch(
        f"/api/v1/appointments/{appointment['id']}", json={"status": "maybe"}, headers=auth_headers
    )

    assert response.status_code == 400


# =============================================================================
# GOOGLE CALENDAR
# =============================================================================

@pytest.mark.asyncio
async def test_appointment_is_synced_to_google(async_client: AsyncClient, auth_user, monkeypatch):
    headers = auth_user["headers"]
    await connect_google(auth_user["id"])
    create_event = AsyncMock(return_value={
        "event_id": "evt123",
        "event_link": "https://calendar.google.com/event?eid=evt123",
        "event_status": "confirmed",
    })
    delete_event = AsyncMock(return_value=None)
    monkeypatch.setattr(google_calendar_service, "create_event", create_event)
    monkeypatch.setattr(google_calendar_service, "delete_event", delete_event)
    lead = await create_lead_via_api(async_client, headers)

    appointment = await create_appointment(async_client, headers, lead["id"])
    cancelled = await async_client.post(f"/api/v1/appointments/{appointment['id']}/cancel", headers=headers)

    assert appointment["google_event_id"] == "evt123"
    assert appointment["google_event_status"] == "confirmed"
    assert create_event.await_count == 1
    assert delete_event.await_args.args[2] == "evt123"
    assert cancelled.json()["google_event_status"] == "cancelled"


@pytest.mark.asyncio
async def test_google_failure_does_not_block_appointment(async_client: AsyncClient, auth_user, monkeypatch):
    headers = auth_user["headers"]
    await connect_google(auth_user["id"])
    monkeypatch.setattr(
        google_calendar_service,
        "create_event",
        AsyncMock(side_effect=CalendarSyncError("Google Calendar API error")),
    )
    lead = await create_lead_via_api(async_client, headers)

    appointment = await create_appointment(async_client, headers, lead["id"])

    assert appointment["google_event_id"] is None
    assert appointment["google_event_status"] == "sync_failed"


@pytest.mark.asyncio
async def test_calendar_status(async_client: AsyncClient, auth_user):
    before = await async_client.get("/api/v1/calendar/status", headers=auth_user["headers"])
    await connect_google(auth_user["id"])
    after = await async_client.get("/api/v1/calendar/status", headers=auth_user["headers"])

    assert before.json()["connected"] is False
    assert after.json()["connected"] is True
    assert after.json()["calendar_id"] == "primary"
