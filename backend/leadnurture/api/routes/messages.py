"""
ROTAS: MENSAGENS
=================

- Painel: criar/enviar, editar agendadas, apagar, atrasadas, estatísticas
- Webhooks do Twilio: SMS recebido (/receive) e status de entrega (/status-callback)
- Playground: testa o prompt sem salvar nada
"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import MessageCreate, MessageUpdate, PlaygroundRequest
from leadnurture.domain.entities import DeliveryStatus, LeadType, User, as_utc
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services import openai_service
from leadnurture.infrastructure.services.lead_service import get_lead_for_user
from leadnurture.infrastructure.services.messaging_service import (
    craft_and_send,
    get_message_for_user,
    get_message_stats,
    handle_inbound,
    list_overdue_messages,
    queue_outgoing_message,
    send_message,
    serialize_message,
    update_delivery_status,
)
from leadnurture.infrastructure.services.settings_service import get_user_settings
from leadnurture.infrastructure.services.twilio_service import empty_twiml, validate_twilio_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Mensagens"])


def _twiml_response() -> Response:
    return Response(content=empty_twiml(), media_type="application/xml")


# ============================================
# PAINEL
# ============================================

@router.post("", status_code=201)
async def create_message(
    payload: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cria mensagem para o lead.

    Sem scheduled_at (ou no passado) envia na hora; com data futura fica na fila.
    """
    lead = await get_lead_for_user(db, user.id, payload.lead_id)
    if lead.is_archived:
        raise HTTPException(status_code=400, detail="Lead is archived")

    scheduled_at = as_utc(payload.scheduled_at)
    message = await queue_outgoing_message(db, lead, payload.text.strip(), scheduled_at=scheduled_at)

    if scheduled_at is None or scheduled_at <= datetime.now(timezone.utc):
        await send_message(db, message, lead)

    await db.commit()
    return serialize_message(message)


@router.get("/overdue")
async def overdue_messages(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mensagens na fila com horário já vencido (o job ainda não pegou)."""
    messages = await list_overdue_messages(db, user.id)
    return [serialize_message(m) for m in messages]


@router.get("/stats")
async def message_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_message_stats(db, user.id)


@router.post("/{message_id}/send")
async def send_now(
    message_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Envia agora uma mensagem que estava na fila."""
    message = await get_message_for_user(db, user.id, message_id)
    if message.delivery_status != DeliveryStatus.QUEUED.value:
        raise HTTPException(status_code=400, detail="Only queued messages can be sent")

    if message.is_ai_generated and not (message.text or "").strip():
        await craft_and_send(db, message)
    else:
        await send_message(db, message)

    await db.commit()
    return serialize_message(message)


@router.patch("/{message_id}")
async def update_message(
    message_id: int,
    payload: MessageUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edita texto/horário de uma mensagem ainda na fila."""
    message = await get_message_for_user(db, user.id, message_id)
    if message.delivery_status != DeliveryStatus.QUEUED.value:
        raise HTTPException(status_code=400, detail="Only queued messages can be edited")

    if payload.text is not None:
        message.text = payload.text.strip()
        # texto escrito pelo corretor não é mais reescrito pela IA
        message.is_ai_generated = False
    if payload.scheduled_at is not None:
        message.scheduled_at = as_utc(payload.scheduled_at)

    await db.commit()
    return serialize_message(message)


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await get_message_for_user(db, user.id, message_id)
    await db.delete(message)
    await db.commit()
    return {"success": True}


# ============================================
# WEBHOOKS TWILIO
# ============================================

@router.post("/receive", dependencies=[Depends(validate_twilio_signature)])
async def receive_sms(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """SMS recebido. Sempre responde TwiML vazio (a resposta sai pela API)."""
    form = await request.form()
    from_number = form.get("From")
    body = form.get("Body") or ""
    sid = form.get("MessageSid") or form.get("SmsSid")

    if not from_number:
        raise HTTPException(status_code=400, detail="Missing From")

    await handle_inbound(db, str(from_number), str(body), str(sid) if sid else None)
    await db.commit()

    return _twiml_response()


@router.post("/status-callback", dependencies=[Depends(validate_twilio_signature)])
async def status_callback(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    sid = form.get("MessageSid") or form.get("SmsSid")
    status = form.get("MessageStatus") or form.get("SmsStatus")

    if not sid:
        raise HTTPException(status_code=400, detail="Missing MessageSid")
    if not status:
        raise HTTPException(status_code=400, detail="Missing MessageStatus")

    found = await update_delivery_status(
        db,
        str(sid),
        str(status),
        error_code=form.get("ErrorCode"),
        error_message=form.get("ErrorMessage"),
    )
    if not found:
        logger.warning(f"⚠️ Callback de status para SID desconhecido: {sid}")
        raise HTTPException(status_code=404, detail="Message not found")

    await db.commit()
    return _twiml_response()


# ============================================
# PLAYGROUND
# ============================================

@router.post("/playground")
async def playground(
    payload: PlaygroundRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Resposta da IA com o prompt do corretor, sem lead real e sem salvar."""
    if payload.lead_type not in {t.value for t in LeadType}:
        raise HTTPException(status_code=400, detail=f"Invalid lead type: {payload.lead_type}")

    user_settings = await get_user_settings(db, user.id)
    try:
        parsed = await openai_service.generate_playground_response(
            payload.text,
            [m.model_dump() for m in payload.previous_messages],
            user_settings,
            lead_type=payload.lead_type,
        )
    except Exception as e:
        logger.error(f"❌ Erro no playground: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail="AI response failed")

    return {
        "response": parsed.text,
        "raw_response": parsed.raw_text,
        "appointment": parsed.appointment.to_dict() if parsed.appointment else None,
        "search_criteria": parsed.search_criteria,
        "tokens_used": parsed.tokens_used,
    }
