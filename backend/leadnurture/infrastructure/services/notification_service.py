"""
NOTIFICATION SERVICE
=====================

Notificações exibidas no painel do corretor.

Tipos:
- message: lead respondeu
- appointment: agendamento criado (manual ou pela IA)
- search_criteria: IA entendeu o que o lead procura
- delivery_failed: SMS não foi entregue
"""

import logging
from typing import Any, Optional
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.domain.entities import Notification, NotificationType, to_iso

logger = logging.getLogger(__name__)


async def create_notification(
    db: AsyncSession,
    user_id: int,
    type: str,
    title: str,
    message: str,
    lead_id: Optional[int] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> Notification:
    if type not in {t.value for t in NotificationType}:
        raise ValueError(f"Invalid notification type: {type}")

    notification = Notification(
        user_id=user_id,
        lead_id=lead_id,
        type=type,
        title=title,
        message=message,
        is_read=False,
        meta=metadata or {},
    )
    db.add(notification)
    await db.flush()

    logger.info(f"🔔 Notificação criada: {type} para user {user_id}", extra={"lead_id": lead_id})
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read == False)
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def list_for_lead(db: AsyncSession, user_id: int, lead_id: int) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.lead_id == lead_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Notification.id))
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)
    )
    return result.scalar() or 0


async def get_notification(db: AsyncSession, user_id: int, notification_id: int) -> Optional[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def set_read(db: AsyncSession, notification: Notification, is_read: bool = True) -> Notification:
    notification.is_read = is_read
    await db.flush()
    return notification


async def mark_all_read(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)
        .values(is_read=True)
    )
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, notification: Notification) -> None:
    await db.delete(notification)
    await db.flush()


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "lead_id": n.lead_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "is_read": n.is_read,
        "metadata": n.meta or {},
        "created_at": to_iso(n.created_at),
    }
