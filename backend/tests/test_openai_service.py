"""Chamada à OpenAI: datas do prompt no fuso do corretor e histórico."""

from datetime import datetime, timezone

import pytest

from leadnurture.domain.entities import Lead, Message, UserSettings
from leadnurture.infrastructure.services import openai_service


@pytest.fixture
def pacific(monkeypatch):
    monkeypatch.setattr(openai_service.settings, "timezone", "America/Los_Angeles")


def system_prompt(mock) -> str:
    messages = mock.await_args.args[0]
    assert messages[0]["role"] == "system"
    return messages[0]["content"]


@pytest.mark.asyncio
async def test_prompt_date_uses_agent_timezone(ai_reply, pacific):
    mock = ai_reply("Hi John!")
    lead = Lead(name="John", phone_number="15551234567", lead_type="buyer", status="New")

    # 03:00 UTC de 15/06 ainda é 14/06 (20:00) em Los Angeles
    await openai_service.generate_response(
        lead, [], UserSettings(agent_name="Jane Doe"), now=datetime(2025, 6, 15, 3, 0, tzinfo=timezone.utc)
    )

    prompt = system_prompt(mock)
    assert "June 14, 2025 (Saturday)" in prompt
    assert "06/15/2025" in prompt
    assert "June 15, 2025" not in prompt


@pytest.mark.asyncio
async def test_playground_prompt_date_uses_agent_timezone(ai_reply, pacific):
    mock = ai_reply("Hello there")

    await openai_service.generate_playground_response(
        "Hi", [], None, now=datetime(2025, 6, 15, 3, 0, tzinfo=timezone.utc)
    )

    assert "June 14, 2025 (Saturday)" in system_prompt(mock)


def test_local_now_treats_naive_as_utc(pacific):
    local = openai_service.local_now(datetime(2025, 1, 10, 6, 0))

    assert (local.year, local.month, local.day, local.hour) == (2025, 1, 9, 22)


def test_history_skips_queued_and_empty_messages():
    history = [
        Message(sender="lead", text="Looking for a condo", delivery_status="received"),
        Message(sender="agent", text="Great, where?", delivery_status="sent"),
        Message(sender="agent", text="", delivery_status="sent"),
        Message(sender="agent", text="Follow-up draft", delivery_status="queued"),
    ]

    assert openai_service.history_to_chat(history) == [
        {"role": "user", "content": "Looking for a condo"},
        {"role": "assistant", "content": "Great, where?"},
    ]
