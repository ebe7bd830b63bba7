"""
ROTAS: GOOGLE CALENDAR
=======================

Conexão OAuth do corretor com o Google Calendar.

O callback do Google chega sem o header Authorization: o `state` é um JWT
curto com o id do usuário.
"""

import logging
from datetime import timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.config import get_settings
from leadnurture.domain.entities import User, as_utc
from leadnurture.domain.exceptions import CalendarSyncError
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services import google_calendar_service
from leadnurture.infrastructure.services.auth_service import create_user_token, user_id_from_token

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(prefix="/calendar", tags=["Google Calendar"])

STATE_PURPOSE = "google_oauth"
STATE_TTL = timedelta(minutes=10)


@router.get("/auth-url")
async def auth_url(user: User = Depends(get_current_user)):
    state = create_user_token(user.id, purpose=STATE_PURPOSE, expires_delta=STATE_TTL)
    return {"url": google_calendar_service.get_authorization_url(state)}


@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Google redireciona para cá; no fim volta para o painel."""
    redirect_base = f"{settings.frontend_url.rstrip('/')}/settings/calendar"

    if error:
        logger.warning(f"⚠️ Google OAuth recusado: {error}")
        return RedirectResponse(f"{redirect_base}?status=error")

    user_id = user_id_from_token(state, purpose=STATE_PURPOSE)
    if not code or user_id is None:
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    user = await db.get(User, user_id)
    if user is None or not user.active:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        await google_calendar_service.exchange_code(db, user, code)
    except CalendarSyncError:
        return RedirectResponse(f"{redirect_base}?status=error")

    await db.commit()
    return RedirectResponse(f"{redirect_base}?status=connected")


@router.get("/status")
async def calendar_status(user: User = Depends(get_current_user)):
    expiry = as_utc(user.google_token_expiry)
    return {
        "connected": user.google_connected,
        "calendar_id": user.google_calendar_id,
        "token_expiry": expiry.isoformat() if expiry else None,
        "configured": settings.google_configured,
    }


@router.delete("/disconnect")
async def disconnect(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    google_calendar_service.disconnect(user)
    await db.commit()
    logger.info(f"📆 Google Calendar desconectado para user {user.id}")
    return {"success": True, "connected": False}
