"""
ROTAS: NOTIFICAÇÕES
====================

Endpoints para gerenciar notificações do corretor.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.domain.entities import User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.lead_service import get_lead_for_user
from leadnurture.infrastructure.services.notification_service import (
    count_unread,
    delete_notification,
    get_notification,
    list_for_lead,
    list_notifications,
    mark_all_read,
    serialize_notification,
    set_read,
)

router = APIRouter(prefix="/notifications", tags=["Notificações"])


async def _get_or_404(db: AsyncSession, user: User, notification_id: int):
    notification = await get_notification(db, user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("")
async def list_all(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Lista notificações do corretor (mais recentes primeiro)."""
    notifications = await list_notifications(db, user.id, unread_only=unread_only, limit=limit)
    return [serialize_notification(n) for n in notifications]


@router.get("/count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"unread_count": await count_unread(db, user.id)}


@router.get("/lead/{lead_id}")
async def by_lead(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    return [serialize_notification(n) for n in await list_for_lead(db, user.id, lead.id)]


@router.patch("/read-all")
async def read_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await mark_all_read(db, user.id)
    await db.commit()
    return {"success": True, "updated": updated}


@router.patch("/{notification_id}/read")
async def mark_as_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_or_404(db, user, notification_id)
    await set_read(db, notification, True)
    await db.commit()
    return serialize_notification(notification)


@router.patch("/{notification_id}/unread")
async def mark_as_unread(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_or_404(db, user, notification_id)
    await set_read(db, notification, False)
    await db.commit()
    return serialize_notification(notification)


@router.delete("/{notification_id}")
async def delete(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_or_404(db, user, notification_id)
    await delete_notification(db, notification)
    await db.commit()
    return {"success": True}
