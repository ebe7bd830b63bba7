"""
SERVIÇO DE MENSAGENS (ORQUESTRADOR)
====================================

Liga Twilio, OpenAI e o banco:

- send_message: envia uma mensagem já criada e registra o resultado
- craft_and_send: IA escreve o texto (follow-ups) e envia
- handle_inbound: SMS do lead -> histórico, notas, status, opt-out, resposta da IA
- update_delivery_status: callback de status do Twilio
- process_due_messages: job que envia as mensagens agendadas vencidas

Falhas de envio não sobem exceção: ficam registradas na mensagem
(delivery_status=failed + error_code/error_message) e viram notificação.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import (
    AppointmentSource,
    DeliveryStatus,
    Lead,
    Message,
    MessageSender,
    NotificationType,
    User,
    UserSettings,
    to_iso,
)
from leadnurture.domain.exceptions import MessageDeliveryError, NurtureError
from leadnurture.domain.services.ai_response_parser import ParsedAIResponse
from leadnurture.domain.services.lead_status import is_opt_in, is_opt_out, status_after_inbound
from leadnurture.domain.services.phone import normalize_phone
from leadnurture.infrastructure.services import openai_service, twilio_service
from leadnurture.infrastructure.services.appointment_service import create_appointment
from leadnurture.infrastructure.services.follow_up_service import (
    cancel_pending_follow_ups,
    schedule_follow_up,
)
from leadnurture.infrastructure.services.lead_service import change_status, find_lead_by_phone, update_lead_scores
from leadnurture.infrastructure.services.notification_service import create_notification
from leadnurture.infrastructure.services.property_service import upsert_search
from leadnurture.infrastructure.services.settings_service import get_user_settings

logger = logging.getLogger(__name__)

settings = get_settings()

HISTORY_LIMIT = 30
ACTIVE_CONVERSATION_DAYS = 7


def _now() -> datetime:
    return datetime.now(timezone.utc)


def ai_allowed(lead: Lead, user_settings: Optional[UserSettings]) -> bool:
    if not lead.is_ai_enabled or lead.opted_out or lead.is_archived:
        return False
    return user_settings is None or bool(user_settings.ai_assistant_enabled)


# =============================================================================
# CRIAÇÃO / ENVIO
# =============================================================================

async def queue_outgoing_message(
    db: AsyncSession,
    lead: Lead,
    text: str,
    scheduled_at: Optional[datetime] = None,
    is_ai_generated: bool = False,
    metadata: Optional[dict] = None,
) -> Message:
    message = Message(
        lead_id=lead.id,
        text=text,
        sender=MessageSender.AGENT.value,
        is_ai_generated=is_ai_generated,
        delivery_status=DeliveryStatus.QUEUED.value,
        scheduled_at=scheduled_at,
        meta=metadata or {},
    )
    db.add(message)
    await db.flush()
    return message


async def _record_failure(db: AsyncSession, lead: Lead, message: Message, code: str, error: str) -> None:
    message.delivery_status = DeliveryStatus.FAILED.value
    message.error_code = code
    message.error_message = error
    message.status_updated_at = _now()
    await db.flush()

    await create_notification(
        db,
        user_id=lead.user_id,
        lead_id=lead.id,
        type=NotificationType.DELIVERY_FAILED.value,
        title="Message Delivery Failed",
        message=f"Message to {lead.name} failed: {error}",
        metadata={"message_id": message.id, "error_code": code},
    )


async def send_message(db: AsyncSession, message: Message, lead: Optional[Lead] = None) -> Message:
    """
    Envia a mensagem pelo Twilio e registra o resultado.

    Nunca levanta erro de entrega: o resultado fica em message.delivery_status.
    """
    if lead is None:
        lead = await db.get(Lead, message.lead_id)

    if lead.opted_out:
        logger.warning(f"🚫 Lead {lead.id} fez opt-out; mensagem {message.id} não enviada")
        await _record_failure(db, lead, message, "OPTED_OUT", "Lead has opted out of messages")
        return message

    if not (message.text or "").strip():
        await _record_failure(db, lead, message, "EMPTY_MESSAGE", "Message text is empty")
        return message

    message.delivery_status = DeliveryStatus.SENDING.value
    await db.flush()

    try:
        sent = await twilio_service.send_sms(lead.phone_number, message.text)
    except MessageDeliveryError as e:
        await _record_failure(db, lead, message, e.code or "TWILIO_ERROR", e.message)
        return message
    except Exception as e:
        logger.error(f"❌ Erro inesperado enviando mensagem {message.id}: {e}", exc_info=True)
        await _record_failure(db, lead, message, "UNKNOWN", str(e))
        return message

    now = _now()
    message.twilio_sid = sent.sid
    message.delivery_status = DeliveryStatus.SENT.value
    message.status_updated_at = now
    lead.last_message_at = now
    await db.flush()
    return message


async def _conversation_history(db: AsyncSession, lead_id: int, exclude_id: Optional[int] = None) -> list[Message]:
    query = select(Message).where(Message.lead_id == lead_id)
    if exclude_id is not None:
        query = query.where(Message.id != exclude_id)
    query = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(HISTORY_LIMIT)
    rows = (await db.execute(query)).scalars().all()
    return list(reversed(rows))


async def apply_ai_extractions(
    db: AsyncSession,
    user: User,
    lead: Lead,
    parsed: ParsedAIResponse,
) -> None:
    """Agendamento e critérios de busca extraídos da resposta da IA."""
    if parsed.appointment is not None:
        local_start = parsed.appointment.start.replace(tzinfo=ZoneInfo(settings.timezone))
        await create_appointment(
            db,
            user,
            lead,
            title=f"Appointment with {lead.name}",
            start_time=local_start,
            description="Scheduled by the AI assistant over SMS",
            source=AppointmentSource.AI,
        )

    if parsed.search_criteria is not None:
        try:
            search = await upsert_search(
                db, lead.id, parsed.search_criteria, original_text=parsed.raw_search_text
            )
        except NurtureError as e:
            logger.warning(f"⚠️ Critérios da IA ignorados para lead {lead.id}: {e.message}")
            return
        await create_notification(
            db,
            user_id=user.id,
            lead_id=lead.id,
            type=NotificationType.SEARCH_CRITERIA.value,
            title="Search Criteria Updated",
            message=f"New property search criteria for {lead.name}",
            metadata={"search_id": search.id},
        )


async def craft_and_send(db: AsyncSession, message: Message, lead: Optional[Lead] = None) -> Message:
    """
    IA escreve o texto da mensagem (follow-up ou resposta) e envia.

    Erro na IA -> mensagem falha com PROCESSING_ERROR.
    """
    if lead is None:
        lead = await db.get(Lead, message.lead_id)
    user = await db.get(User, lead.user_id)
    user_settings = await get_user_settings(db, lead.user_id)

    history = await _conversation_history(db, lead.id, exclude_id=message.id)

    try:
        parsed = await openai_service.generate_response(
            lead, history, user_settings, follow_up=message.is_follow_up
        )
    except Exception as e:
        logger.error(f"❌ Falha da IA para mensagem {message.id}: {e}", exc_info=True)
        await _record_failure(db, lead, message, "PROCESSING_ERROR", str(e))
        return message

    message.text = parsed.text
    message.is_ai_generated = True
    await db.flush()

    await send_message(db, message, lead)

    if message.delivery_status == DeliveryStatus.SENT.value:
        if message.is_follow_up:
            lead.follow_up_count = (lead.follow_up_count or 0) + 1
        await apply_ai_extractions(db, user, lead, parsed)
        await schedule_follow_up(db, lead, user_settings)

    return message


# =============================================================================
# ENTRADA (webhook)
# =============================================================================

async def handle_inbound(
    db: AsyncSession,
    from_number: str,
    body: str,
    sid: Optional[str] = None,
) -> Optional[Message]:
    """
    Processa SMS recebido.

    Telefone desconhecido: só loga e ignora (retorna None).
    """
    phone = normalize_phone(from_number)
    lead = await find_lead_by_phone(db, phone)
    if lead is None:
        logger.warning(f"📵 SMS de número desconhecido ignorado: {phone}")
        return None

    now = _now()
    inbound = Message(
        lead_id=lead.id,
        text=body,
        sender=MessageSender.LEAD.value,
        twilio_sid=sid,
        delivery_status=DeliveryStatus.RECEIVED.value,
        status_updated_at=now,
        meta={},
    )
    db.add(inbound)

    lead.last_message_at = now
    lead.last_inbound_at = now
    lead.follow_up_count = 0
    await db.flush()
    await cancel_pending_follow_ups(db, lead.id)
    await update_lead_scores(db, lead)

    logger.info(f"📥 SMS recebido do lead {lead.id}", extra={"lead_id": lead.id})

    # Opt-out / opt-in (palavras-chave do Twilio)
    if is_opt_out(body):
        lead.opted_out = True
        await db.flush()
        logger.info(f"🛑 Lead {lead.id} fez opt-out")
        return inbound
    if is_opt_in(body) and lead.opted_out:
        lead.opted_out = False
        await db.flush()
        logger.info(f"✅ Lead {lead.id} voltou a aceitar mensagens")

    await change_status(db, lead, status_after_inbound(lead.status))

    await create_notification(
        db,
        user_id=lead.user_id,
        lead_id=lead.id,
        type=NotificationType.MESSAGE.value,
        title=f"New message from {lead.name}",
        message=body[:200],
        metadata={"message_id": inbound.id},
    )

    user_settings = await get_user_settings(db, lead.user_id)
    if not ai_allowed(lead, user_settings):
        await schedule_follow_up(db, lead, user_settings)
        return inbound

    reply = await queue_outgoing_message(db, lead, "", is_ai_generated=True)
    await craft_and_send(db, reply, lead)

    if reply.delivery_status != DeliveryStatus.SENT.value:
        await schedule_follow_up(db, lead, user_settings)

    return inbound


async def update_delivery_status(
    db: AsyncSession,
    sid: str,
    status: str,
    error_code: Optional[str] = None,
    error_message: Optional[str] = None,
) -> bool:
    """Atualiza status pelo callback do Twilio. False se o SID não existir."""
    result = await db.execute(select(Message).where(Message.twilio_sid == sid))
    message = result.scalar_one_or_none()
    if message is None:
        return False

    message.delivery_status = status
    message.status_updated_at = _now()
    if error_code:
        message.error_code = str(error_code)
    if error_message:
        message.error_message = error_message
    await db.flush()

    logger.info(f"📬 Status {sid}: {status}", extra={"message_id": message.id})
    return True


# =============================================================================
# JOB: mensagens agendadas vencidas
# =============================================================================

async def get_due_messages(db: AsyncSession, now: Optional[datetime] = None) -> list[Message]:
    now = now or _now()
    result = await db.execute(
        select(Message)
        .where(Message.delivery_status == DeliveryStatus.QUEUED.value)
        .where(Message.scheduled_at.is_not(None))
        .where(Message.scheduled_at <= now)
        .order_by(Message.scheduled_at.asc())
    )
    return list(result.scalars().all())


async def process_due_messages(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """
    Envia as mensagens vencidas com commit por mensagem.

    SMS que já saiu fica gravado como `sent` mesmo que outra mensagem da
    mesma rodada falhe depois.
    """
    stats = {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}
    message_ids = [message.id for message in await get_due_messages(db, now)]

    for message_id in message_ids:
        stats["processed"] += 1
        message = await db.get(Message, message_id)
        lead = await db.get(Lead, message.lead_id)

        if lead is None or lead.is_archived:
            message.delivery_status = DeliveryStatus.CANCELED.value
            stats["skipped"] += 1
            await db.commit()
            continue

        if message.is_follow_up and not ai_allowed(lead, await get_user_settings(db, lead.user_id)):
            message.delivery_status = DeliveryStatus.CANCELED.value
            stats["skipped"] += 1
            await db.commit()
            continue

        try:
            if message.is_ai_generated and not (message.text or "").strip():
                await craft_and_send(db, message, lead)
            else:
                await send_message(db, message, lead)
            await db.commit()
        except Exception as e:
            stats["failed"] += 1
            logger.error(f"❌ Erro processando mensagem {message_id}: {e}", exc_info=True)
            await db.rollback()
            await _mark_processing_error(db, message_id, str(e))
            continue

        if message.delivery_status == DeliveryStatus.SENT.value:
            stats["sent"] += 1
        else:
            stats["failed"] += 1

    return stats


async def _mark_processing_error(db: AsyncSession, message_id: int, error: str) -> None:
    # sai da fila: não reenvia a cada minuto
    message = await db.get(Message, message_id)
    message.delivery_status = DeliveryStatus.FAILED.value
    message.error_code = "PROCESSING_ERROR"
    message.error_message = error
    message.status_updated_at = _now()
    await db.commit()


# =============================================================================
# CONSULTAS
# =============================================================================

async def list_lead_messages(db: AsyncSession, lead_id: int) -> list[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.lead_id == lead_id)
        .where(Message.delivery_status != DeliveryStatus.CANCELED.value)
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    return list(result.scalars().all())


async def list_overdue_messages(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> list[Message]:
    now = now or _now()
    result = await db.execute(
        select(Message)
        .join(Lead, Lead.id == Message.lead_id)
        .where(Lead.user_id == user_id)
        .where(Message.delivery_status == DeliveryStatus.QUEUED.value)
        .where(Message.scheduled_at.is_not(None))
        .where(Message.scheduled_at < now)
        .order_by(Message.scheduled_at.asc())
    )
    return list(result.scalars().all())


async def get_message_for_user(db: AsyncSession, user_id: int, message_id: int) -> Message:
    result = await db.execute(
        select(Message)
        .join(Lead, Lead.id == Message.lead_id)
        .where(Message.id == message_id)
        .where(Lead.user_id == user_id)
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise NurtureError("Message not found", status_code=404)
    return message


async def get_message_stats(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> dict:
    now = now or _now()
    base = (
        select(func.count(Message.id))
        .join(Lead, Lead.id == Message.lead_id)
        .where(Lead.user_id == user_id)
    )

    total = (await db.execute(base)).scalar() or 0
    delivered = (await db.execute(
        base.where(Message.delivery_status == DeliveryStatus.DELIVERED.value)
    )).scalar() or 0
    failed = (await db.execute(
        base.where(Message.delivery_status.in_([
            DeliveryStatus.FAILED.value,
            DeliveryStatus.UNDELIVERED.value,
        ]))
    )).scalar() or 0

    since = now - timedelta(days=ACTIVE_CONVERSATION_DAYS)
    active = (await db.execute(
        select(func.count(func.distinct(Message.lead_id)))
        .join(Lead, Lead.id == Message.lead_id)
        .where(and_(Lead.user_id == user_id, Message.created_at >= since))
        .where(Message.delivery_status != DeliveryStatus.CANCELED.value)
    )).scalar() or 0

    return {
        "total_messages": total,
        "delivered": delivered,
        "failed": failed,
        "active_conversations": active,
    }


def serialize_message(message: Message) -> dict:
    return {
        "id": message.id,
        "lead_id": message.lead_id,
        "text": message.text,
        "sender": message.sender,
        "direction": message.direction,
        "is_ai_generated": message.is_ai_generated,
        "is_follow_up": message.is_follow_up,
        "twilio_sid": message.twilio_sid,
        "delivery_status": message.delivery_status,
        "error_code": message.error_code,
        "error_message": message.error_message,
        "scheduled_at": to_iso(message.scheduled_at),
        "status_updated_at": to_iso(message.status_updated_at),
        "metadata": message.meta or {},
        "created_at": to_iso(message.created_at),
    }
