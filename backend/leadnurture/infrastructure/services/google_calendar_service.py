"""
GOOGLE CALENDAR SERVICE
========================

OAuth do corretor + sincronização dos agendamentos com o Google Calendar.

Tokens ficam no próprio User (google_access_token / google_refresh_token).
As chamadas do googleapiclient são síncronas e rodam em thread separada.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import Appointment, Lead, User, as_utc
from leadnurture.domain.exceptions import CalendarSyncError

logger = logging.getLogger(__name__)

settings = get_settings()

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/calendar.events"]


# =============================================================================
# OAUTH
# =============================================================================

def get_authorization_url(state: str) -> str:
    if not settings.google_configured:
        raise CalendarSyncError("Google Calendar is not configured", status_code=503)

    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": " ".join(SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{AUTH_URL}?{urlencode(params)}"


async def _token_request(data: dict) -> dict:
    async with httpx.AsyncClient(timeout=15) as client:
        response = await client.post(TOKEN_URL, data=data)

    if response.status_code != 200:
        logger.error(f"❌ Google OAuth recusou token: {response.status_code} {response.text}")
        raise CalendarSyncError("Google OAuth token request failed")
    return response.json()


def _apply_tokens(user: User, tokens: dict) -> None:
    user.google_access_token = tokens.get("access_token")
    if tokens.get("refresh_token"):
        user.google_refresh_token = tokens["refresh_token"]
    expires_in = int(tokens.get("expires_in") or 3600)
    user.google_token_expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    if not user.google_calendar_id:
        user.google_calendar_id = "primary"


async def exchange_code(db: AsyncSession, user: User, code: str) -> User:
    """Troca o authorization code por tokens e salva no usuário."""
    tokens = await _token_request({
        "code": code,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "redirect_uri": settings.google_redirect_uri,
        "grant_type": "authorization_code",
    })
    _apply_tokens(user, tokens)
    await db.flush()
    logger.info(f"📆 Google Calendar conectado para user {user.id}")
    return user


async def refresh_if_needed(db: AsyncSession, user: User) -> None:
    """Renova o access token pelo google-auth quando falta pouco para expirar."""
    expiry = as_utc(user.google_token_expiry)
    if expiry and expiry > datetime.now(timezone.utc) + timedelta(minutes=2):
        return
    if not user.google_refresh_token:
        raise CalendarSyncError("Google Calendar is not connected", status_code=400)

    credentials = _credentials(user)
    try:
        await asyncio.to_thread(credentials.refresh, Request())
    except RefreshError as e:
        logger.error(f"❌ Google recusou o refresh do user {user.id}: {e}")
        raise CalendarSyncError("Google OAuth token refresh failed") from e

    user.google_access_token = credentials.token
    if credentials.refresh_token:
        user.google_refresh_token = credentials.refresh_token
    # google-auth trabalha com expiry naive em UTC
    user.google_token_expiry = as_utc(credentials.expiry)
    await db.flush()
    logger.info(f"🔄 Token do Google renovado para user {user.id}")


def disconnect(user: User) -> None:
    user.google_access_token = None
    user.google_refresh_token = None
    user.google_token_expiry = None


# =============================================================================
# EVENTOS
# =============================================================================

def _credentials(user: User) -> Credentials:
    expiry = as_utc(user.google_token_expiry)
    return Credentials(
        token=user.google_access_token,
        refresh_token=user.google_refresh_token,
        token_uri=TOKEN_URL,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        scopes=SCOPES,
        expiry=expiry.replace(tzinfo=None) if expiry else None,
    )


def _build_service(user: User):
    return build("calendar", "v3", credentials=_credentials(user), cache_discovery=False)


def _event_body(appointment: Appointment, lead: Optional[Lead]) -> dict[str, Any]:
    description = appointment.description or ""
    if lead is not None:
        description = f"{description}\n\nLead: {lead.name} ({lead.phone_number})".strip()

    body: dict[str, Any] = {
        "summary": appointment.title,
        "description": description,
        "start": {"dateTime": as_utc(appointment.start_time).isoformat()},
        "end": {"dateTime": as_utc(appointment.end_time).isoformat()},
    }
    if appointment.location:
        body["location"] = appointment.location
    if lead is not None and lead.email:
        body["attendees"] = [{"email": lead.email}]
    return body


def _event_result(event: dict) -> dict[str, Optional[str]]:
    return {
        "event_id": event.get("id"),
        "event_link": event.get("htmlLink"),
        "event_status": event.get("status"),
    }


async def create_event(db: AsyncSession, user: User, appointment: Appointment, lead: Optional[Lead] = None) -> dict:
    await refresh_if_needed(db, user)
    service = _build_service(user)
    request = service.events().insert(
        calendarId=user.google_calendar_id or "primary",
        body=_event_body(appointment, lead),
    )
    try:
        event = await asyncio.to_thread(request.execute)
    except HttpError as e:
        raise CalendarSyncError(f"Google Calendar API error: {e}") from e

    logger.info(f"📆 Evento criado no Google Calendar: {event.get('id')}")
    return _event_result(event)


async def update_event(db: AsyncSession, user: User, appointment: Appointment, lead: Optional[Lead] = None) -> dict:
    await refresh_if_needed(db, user)
    service = _build_service(user)
    request = service.events().patch(
        calendarId=user.google_calendar_id or "primary",
        eventId=appointment.google_event_id,
        body=_event_body(appointment, lead),
    )
    try:
        event = await asyncio.to_thread(request.execute)
    except HttpError as e:
        raise CalendarSyncError(f"Google Calendar API error: {e}") from e
    return _event_result(event)


async def delete_event(db: AsyncSession, user: User, event_id: str) -> None:
    await refresh_if_needed(db, user)
    service = _build_service(user)
    request = service.events().delete(
        calendarId=user.google_calendar_id or "primary",
        eventId=event_id,
    )
    try:
        await asyncio.to_thread(request.execute)
    except HttpError as e:
        raise CalendarSyncError(f"Google Calendar API error: {e}") from e
    logger.info(f"🗑️ Evento removido do Google Calendar: {event_id}")
