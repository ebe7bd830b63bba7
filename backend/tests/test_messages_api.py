"""
TESTES DA API DE MENSAGENS
===========================

Envio pelo painel, fila, webhooks do Twilio (SMS recebido e status) e playground.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.utils import create_lead_via_api


def future(days: int = 1) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


# =============================================================================
# PAINEL
# =============================================================================

@pytest.mark.asyncio
async def test_send_message_now(async_client: AsyncClient, auth_headers, sms_mock):
    lead = await create_lead_via_api(async_client, auth_headers)

    response = await async_client.post(
        "/api/v1/messages", json={"lead_id": lead["id"], "text": "  Hi John!  "}, headers=auth_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["text"] == "Hi John!"
    assert body["sender"] == "agent"
    assert body["direction"] == "outbound"
    assert body["delivery_status"] == "sent"
    assert body["twilio_sid"] == "SM1"
    sms_mock.assert_awaited_once_with("15551234567", "Hi John!")


@pytest.mark.asyncio
async def test_scheduled_message_waits_in_queue(async_client: AsyncClient, auth_headers, sms_mock):
    lead = await create_lead_via_api(async_client, auth_headers, enable_follow_ups=False)

    created = await async_client.post(
        "/api/v1/messages",
        json={"lead_id": lead["id"], "text": "Open house Saturday!", "scheduled_at": future()},
        headers=auth_headers,
    )
    message_id = created.json()["id"]

    assert created.json()["delivery_status"] == "queued"
    assert sms_mock.await_count == 0

    edited = await async_client.patch(
        f"/api/v1/messages/{message_id}", json={"text": "Open house Sunday!"}, headers=auth_headers
    )
    assert edited.json()["text"] == "Open house Sunday!"

    sent = await async_client.post(f"/api/v1/messages/{message_id}/send", headers=auth_headers)
    assert sent.json()["delivery_status"] == "sent"

    again = await async_client.post(f"/api/v1/messages/{message_id}/send", headers=auth_headers)
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_message_to_archived_lead_is_rejected(async_client: AsyncClient, auth_headers, sms_mock):
    lead = await create_lead_via_api(async_client, auth_headers)
    await async_client.delete(f"/api/v1/leads/{lead['id']}", headers=auth_headers)

    response = await async_client.post(
        "/api/v1/messages", json={"lead_id": lead["id"], "text": "Hello"}, headers=auth_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_message(async_client: AsyncClient, auth_headers, sms_mock):
    lead = await create_lead_via_api(async_client, auth_headers, enable_follow_ups=False)
    created = await async_client.post(
        "/api/v1/messages",
        json={"lead_id": lead["id"], "text": "Later", "scheduled_at": future()},
        headers=auth_headers,
    )

    deleted = await async_client.delete(f"/api/v1/messages/{created.json()['id']}", headers=auth_headers)
    history = await async_client.get(f"/api/v1/leads/{lead['id']}/messages", headers=auth_headers)
    missing = await async_client.delete(f"/api/v1/messages/{created.json()['id']}", headers=auth_headers)

    assert deleted.json() == {"success": True}
    assert history.json() == []
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_message_stats(async_client: AsyncClient, auth_headers, sms_mock):
    lead = await create_lead_via_api(async_client, auth_headers)
    await async_client.post("/api/v1/messages", json={"lead_id": lead["id"], "text": "Hi"}, headers=auth_headers)
    await async_client.post(
        "/api/v1/messages/status-callback", data={"MessageSid": "SM1", "MessageStatus": "delivered"}
    )

    stats = (await async_client.get("/api/v1/messages/stats", headers=auth_headers)).json()

    assert stats["delivered"] == 1
    assert stats["failed"] == 0
    assert stats["active_conversations"] == 1
    # mensagem enviada + follow-up agendado
    assert stats["total_messages"] == 2


# =============================================================================
# WEBHOOKS TWILIO
# =============================================================================

@pytest.mark.asyncio
async def test_receive_sms_replies_with_ai(async_client: AsyncClient, auth_headers, sms_mock, ai_reply):
    lead = await create_lead_via_api(async_client, auth_headers)
    ai_reply("Hi John! What neighborhoods do you like?")

    response = await async_client.post("/api/v1/messages/receive", data={
        "From": "+15551234567",
        "Body": "Hi, I'm interested",
        "MessageSid": "SMinbound1",
    })

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "<Response" in response.text

    history = (await async_client.get(f"/api/v1/leads/{lead['id']}/messages", headers=auth_headers)).json()
    texts = [m["text"] for m in history if m["delivery_status"] != "queued"]
    assert "Hi, I'm interested" in texts
    assert "Hi John! What neighborhoods do you like?" in texts

    refreshed = (await async_client.get(f"/api/v1/leads/{lead['id']}", headers=auth_headers)).json()
    assert refreshed["status"] == "In Conversation"


@pytest.mark.asyncio
async def test_receive_from_unknown_number_is_acknowledged(async_client: AsyncClient, sms_mock):
    response = await async_client.post("/api/v1/messages/receive", data={"From": "+15550000000", "Body": "Hi"})

    assert response.status_code == 200
    assert sms_mock.await_count == 0


@pytest.mark.asyncio
async def test_receive_without_sender(async_client: AsyncClient):
    response = await async_client.post("/api/v1/messages/receive", data={"Body": "Hi"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_callback_errors(async_client: AsyncClient):
    unknown = await async_client.post(
        "/api/v1/messages/status-callback", data={"MessageSid": "SMnope", "MessageStatus": "delivered"}
    )
    missing = await async_client.post("/api/v1/messages/status-callback", data={"MessageStatus": "sent"})

    assert unknown.status_code == 404
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_invalid_twilio_signature_is_rejected(async_client: AsyncClient, monkeypatch):
    from leadnurture.infrastructure.services import twilio_service

    monkeypatch.setattr(twilio_service.settings, "twilio_validate_signature", True)
    monkeypatch.setattr(twilio_service.settings, "twilio_auth_token", "auth-token")

    response = await async_client.post(
        "/api/v1/messages/receive",
        data={"From": "+15551234567", "Body": "Hi"},
        headers={"X-Twilio-Signature": "forged"},
    )

    assert response.status_code == 403


# =============================================================================
# PLAYGROUND
# =============================================================================

@pytest.mark.asyncio
async def test_playground_returns_clean_text_and_extractions(async_client: AsyncClient, auth_headers, ai_reply):
    mock = ai_reply(
        "Great, see you then!\nNEW APPOINTMENT SET: 07/01/2031 at 10:00 AM",
        tokens_used=321,
    )

    response = await async_client.post("/api/v1/messages/playground", json={
        "text": "Can we meet July 1st at 10?",
        "previous_messages": [
            {"sender": "agent", "text": "Hi! Are you still looking for a home?"},
            {"sender": "lead", "text": "Yes!"},
        ],
    }, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Great, see you then!"
    assert body["appointment"]["date"] == "07/01/2031"
    assert body["appointment"]["time"] == "10:00 AM"
    assert body["search_criteria"] is None
    assert body["tokens_used"] == 321

    chat = mock.await_args.args[0]
    assert chat[0]["role"] == "system"
    assert [m["role"] for m in chat[1:]] == ["assistant", "user", "user"]


@pytest.mark.asyncio
async def test_playground_invalid_lead_type(async_client: AsyncClient, auth_headers):
    response = await async_client.post(
        "/api/v1/messages/playground", json={"text": "Hi", "lead_type": "renter"}, headers=auth_headers
    )

    assert response.status_code == 400
