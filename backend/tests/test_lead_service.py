"""
TESTES DO SERVIÇO DE LEADS E FOLLOW-UP
=======================================

Criação com telefone normalizado, agendamento do follow-up, troca de
status e inativação automática.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from leadnurture.domain.entities import DeliveryStatus, LeadStatus, Message, as_utc
from leadnurture.domain.exceptions import NurtureError
from leadnurture.infrastructure.services.follow_up_service import get_next_scheduled_message
from leadnurture.infrastructure.services.lead_service import (
    DuplicateLeadError,
    archive_lead,
    bulk_create_leads,
    change_status,
    mark_inactive_leads,
    search_leads,
    update_lead,
)
from tests.utils import make_lead, make_user


async def queued_follow_ups(db, lead_id: int) -> list[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.lead_id == lead_id)
        .where(Message.is_follow_up == True)
        .where(Message.delivery_status == DeliveryStatus.QUEUED.value)
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_lead_normalizes_phone_and_schedules_follow_up(db_session):
    user = await make_user(db_session, follow_up_interval_new=2)

    lead = await make_lead(db_session, user, phone_number="(555) 123-4567")

    assert lead.phone_number == "15551234567"
    assert lead.status == LeadStatus.NEW.value

    follow_up = await get_next_scheduled_message(db_session, lead.id)
    assert follow_up is not None
    assert follow_up.is_follow_up
    assert follow_up.is_ai_generated
    assert follow_up.text == ""
    assert follow_up.direction == "outbound"
    assert as_utc(follow_up.scheduled_at) == as_utc(lead.created_at) + timedelta(days=2)


@pytest.mark.asyncio
async def test_create_lead_rejects_invalid_and_duplicate_phone(db_session):
    user = await make_user(db_session)
    await make_lead(db_session, user, phone_number="5551234567")

    with pytest.raises(DuplicateLeadError):
        await make_lead(db_session, user, phone_number="+1 (555) 123-4567")

    with pytest.raises(NurtureError) as exc:
        await make_lead(db_session, user, phone_number="12345")
    assert exc.value.message == "Phone number is too short"


@pytest.mark.asyncio
async def test_same_phone_is_allowed_for_another_agent(db_session):
    first = await make_user(db_session, email="a@test.com")
    second = await make_user(db_session, email="b@test.com")

    await make_lead(db_session, first, phone_number="5551234567")
    lead = await make_lead(db_session, second, phone_number="5551234567")

    assert lead.user_id == second.id


@pytest.mark.asyncio
async def test_lead_without_follow_ups_gets_nothing_scheduled(db_session):
    user = await make_user(db_session)

    lead = await make_lead(db_session, user, enable_follow_ups=False)

    assert await get_next_scheduled_message(db_session, lead.id) is None


@pytest.mark.asyncio
async def test_status_change_reschedules_single_follow_up(db_session):
    user = await make_user(db_session, follow_up_interval_qualified=9)
    lead = await make_lead(db_session, user)

    changed = await change_status(db_session, lead, LeadStatus.QUALIFIED.value)

    assert changed is True
    pending = await queued_follow_ups(db_session, lead.id)
    assert len(pending) == 1
    assert as_utc(pending[0].scheduled_at) == as_utc(lead.created_at) + timedelta(days=9)


@pytest.mark.asyncio
async def test_update_lead_invalid_status(db_session):
    user = await make_user(db_session)
    lead = await make_lead(db_session, user)

    with pytest.raises(NurtureError):
        await update_lead(db_session, lead, {"status": "Hot"})


@pytest.mark.asyncio
async def test_archive_cancels_pending_follow_ups(db_session):
    user = await make_user(db_session)
    lead = await make_lead(db_session, user)

    await archive_lead(db_session, lead)

    assert lead.is_archived
    assert await queued_follow_ups(db_session, lead.id) == []
    result = await search_leads(db_session, user.id)
    assert result["total"] == 0


@pytest.mark.asyncio
async def test_bulk_create_reports_each_row(db_session):
    user = await make_user(db_session)

    results = await bulk_create_leads(db_session, user.id, [
        {"name": "Ann", "phone_number": "5551110000"},
        {"name": "Bob", "phone_number": "123"},
        {"name": "Ann again", "phone_number": "555-111-0000"},
    ])

    assert [r["success"] for r in results] == [True, False, False]
    assert results[1]["error"] == "Phone number is too short"


@pytest.mark.asyncio
async def test_search_leads_by_name_phone_and_status(db_session):
    user = await make_user(db_session)
    await make_lead(db_session, user, name="Alice Smith", phone_number="5550001111")
    bob = await make_lead(db_session, user, name="Bob Jones", phone_number="5550002222")
    await change_status(db_session, bob, LeadStatus.QUALIFIED.value)

    assert (await search_leads(db_session, user.id, search="alice"))["total"] == 1
    assert (await search_leads(db_session, user.id, search="2222"))["items"][0].id == bob.id
    assert (await search_leads(db_session, user.id, status="Qualified"))["total"] == 1

    page = await search_leads(db_session, user.id, page=2, page_size=1)
    assert page["total"] == 2
    assert page["total_pages"] == 2
    assert len(page["items"]) == 1


@pytest.mark.asyncio
async def test_mark_inactive_leads(db_session):
    user = await make_user(db_session)
    quiet = await make_lead(db_session, user, phone_number="5550001111")
    recent = await make_lead(db_session, user, phone_number="5550002222")
    converted = await make_lead(db_session, user, phone_number="5550003333")

    now = datetime.now(timezone.utc)
    quiet.last_message_at = now - timedelta(days=10)
    recent.last_message_at = now - timedelta(days=1)
    converted.last_message_at = now - timedelta(days=30)
    converted.status = LeadStatus.CONVERTED.value
    await db_session.flush()

    count = await mark_inactive_leads(db_session, now=now)

    assert count == 1
    assert quiet.status == LeadStatus.INACTIVE.value
    assert recent.status == LeadStatus.NEW.value
    assert converted.status == LeadStatus.CONVERTED.value
