"""
SERVIÇO DE FOLLOW-UP
=====================

Follow-ups são mensagens agendadas: uma Message do corretor com
delivery_status "queued", is_follow_up=True e scheduled_at no futuro.
O texto é gerado pela IA só na hora do envio (job de mensagens vencidas).

Regras:
- Cada lead tem no máximo um follow-up pendente
- Qualquer mudança de status reagenda o follow-up
- Resposta do lead zera o contador e cancela o pendente
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import (
    DeliveryStatus,
    Lead,
    Message,
    MessageSender,
    UserSettings,
)
from leadnurture.domain.services.follow_up_schedule import compute_next_follow_up
from leadnurture.infrastructure.services.settings_service import get_user_settings

logger = logging.getLogger(__name__)

settings = get_settings()


async def cancel_pending_follow_ups(db: AsyncSession, lead_id: int) -> int:
    """Cancela follow-ups ainda não enviados. Retorna quantos foram cancelados."""
    result = await db.execute(
        update(Message)
        .where(Message.lead_id == lead_id)
        .where(Message.is_follow_up == True)
        .where(Message.delivery_status == DeliveryStatus.QUEUED.value)
        .values(
            delivery_status=DeliveryStatus.CANCELED.value,
            status_updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session="fetch")
    )
    canceled = result.rowcount or 0
    if canceled:
        logger.info(f"🚫 {canceled} follow-up(s) cancelado(s) para lead {lead_id}")
    return canceled


async def schedule_follow_up(
    db: AsyncSession,
    lead: Lead,
    user_settings: Optional[UserSettings] = None,
    base: Optional[datetime] = None,
) -> Optional[Message]:
    """
    Reagenda o follow-up do lead.

    Returns:
        A mensagem agendada, ou None quando o lead não deve receber follow-up
    """
    await cancel_pending_follow_ups(db, lead.id)

    if user_settings is None:
        user_settings = await get_user_settings(db, lead.user_id)

    scheduled_at = compute_next_follow_up(
        lead,
        user_settings,
        max_follow_ups=settings.max_follow_ups,
        base=base,
    )
    if scheduled_at is None:
        return None

    message = Message(
        lead_id=lead.id,
        text="",
        sender=MessageSender.AGENT.value,
        is_ai_generated=True,
        is_follow_up=True,
        delivery_status=DeliveryStatus.QUEUED.value,
        scheduled_at=scheduled_at,
        meta={},
    )
    db.add(message)
    await db.flush()

    logger.info(
        f"⏰ Follow-up agendado para lead {lead.id} em {scheduled_at.isoformat()}",
        extra={"lead_id": lead.id, "status": lead.status},
    )
    return message


async def get_next_scheduled_message(db: AsyncSession, lead_id: int) -> Optional[Message]:
    """Próxima mensagem agendada (a mais próxima) do lead."""
    result = await db.execute(
        select(Message)
        .where(Message.lead_id == lead_id)
        .where(Message.delivery_status == DeliveryStatus.QUEUED.value)
        .where(Message.scheduled_at.is_not(None))
        .order_by(Message.scheduled_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()
