"""
SERVIÇO DE AGENDAMENTOS
========================

- Criação manual (painel) ou pela IA ("NEW APPOINTMENT SET")
- Sincronização com o Google Calendar quando o corretor conectou a conta
  (falha no Google nunca impede o agendamento)
- Atualiza o status do lead: agendado -> Appointment Set, realizado -> Converted
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import (
    Appointment,
    AppointmentSource,
    AppointmentStatus,
    Lead,
    NotificationType,
    User,
    as_utc,
    to_iso,
)
from leadnurture.domain.exceptions import CalendarSyncError, NurtureError
from leadnurture.domain.services.lead_status import status_for_appointment
from leadnurture.infrastructure.services import google_calendar_service
from leadnurture.infrastructure.services.lead_service import change_status
from leadnurture.infrastructure.services.notification_service import create_notification

logger = logging.getLogger(__name__)

settings = get_settings()

UPCOMING_LIMIT = 10


def format_appointment_when(start: datetime) -> str:
    """"June 15 at 2:30 PM" (sem zero à esquerda)."""
    hour = start.hour % 12 or 12
    suffix = "AM" if start.hour < 12 else "PM"
    return f"{start.strftime('%B')} {start.day} at {hour}:{start.minute:02d} {suffix}"


async def get_appointment_for_user(db: AsyncSession, user_id: int, appointment_id: int) -> Appointment:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .where(Appointment.user_id == user_id)
    )
    appointment = result.scalar_one_or_none()
    if appointment is None:
        raise NurtureError("Appointment not found", status_code=404)
    return appointment


async def _sync_create(db: AsyncSession, user: User, appointment: Appointment, lead: Lead) -> None:
    if not user.google_connected:
        return
    try:
        event = await google_calendar_service.create_event(db, user, appointment, lead)
    except CalendarSyncError as e:
        logger.warning(f"⚠️ Agendamento {appointment.id} não sincronizado com Google: {e.message}")
        appointment.google_event_status = "sync_failed"
        return
    appointment.google_event_id = event["event_id"]
    appointment.google_event_link = event["event_link"]
    appointment.google_event_status = event["event_status"]


async def _sync_update(db: AsyncSession, user: User, appointment: Appointment, lead: Lead) -> None:
    if not user.google_connected:
        return
    if not appointment.google_event_id:
        await _sync_create(db, user, appointment, lead)
        return
    try:
        event = await google_calendar_service.update_event(db, user, appointment, lead)
    except CalendarSyncError as e:
        logger.warning(f"⚠️ Falha ao atualizar evento {appointment.google_event_id}: {e.message}")
        return
    appointment.google_event_link = event["event_link"] or appointment.google_event_link
    appointment.google_event_status = event["event_status"]


async def _sync_delete(db: AsyncSession, user: User, appointment: Appointment) -> None:
    if not user.google_connected or not appointment.google_event_id:
        return
    try:
        await google_calendar_service.delete_event(db, user, appointment.google_event_id)
    except CalendarSyncError as e:
        logger.warning(f"⚠️ Falha ao remover evento {appointment.google_event_id}: {e.message}")
        return
    appointment.google_event_status = "cancelled"


async def create_appointment(
    db: AsyncSession,
    user: User,
    lead: Lead,
    title: str,
    start_time: datetime,
    end_time: Optional[datetime] = None,
    location: Optional[str] = None,
    description: Optional[str] = None,
    source: str = AppointmentSource.MANUAL,
) -> Appointment:
    start_time = as_utc(start_time)
    end_time = as_utc(end_time) or start_time + timedelta(minutes=settings.default_appointment_minutes)
    if end_time <= start_time:
        raise NurtureError("End time must be after start time")

    appointment = Appointment(
        user_id=user.id,
        lead_id=lead.id,
        title=title,
        start_time=start_time,
        end_time=end_time,
        location=location,
        description=description,
        status=AppointmentStatus.SCHEDULED,
        source=source,
    )
    db.add(appointment)
    await db.flush()

    await _sync_create(db, user, appointment, lead)

    await create_notification(
        db,
        user_id=user.id,
        lead_id=lead.id,
        type=NotificationType.APPOINTMENT.value,
        title="New Appointment Created",
        message=f"{title} on {format_appointment_when(start_time.astimezone(ZoneInfo(settings.timezone)))}",
        metadata={"appointment_id": appointment.id, "source": source},
    )

    await change_status(db, lead, status_for_appointment(lead.status, appointment.status))

    logger.info(
        f"📅 Agendamento {appointment.id} criado para lead {lead.id} ({source})",
        extra={"user_id": user.id},
    )
    return appointment


async def update_appointment(
    db: AsyncSession,
    user: User,
    appointment: Appointment,
    lead: Lead,
    data: dict[str, Any],
) -> Appointment:
    if "status" in data and data["status"] is not None and data["status"] not in AppointmentStatus.ALL:
        raise NurtureError(f"Invalid appointment status: {data['status']}")

    for field in ("title", "location", "description", "start_time", "end_time", "status"):
        if field in data and data[field] is not None:
            value = as_utc(data[field]) if field in ("start_time", "end_time") else data[field]
            setattr(appointment, field, value)

    if as_utc(appointment.end_time) <= as_utc(appointment.start_time):
        raise NurtureError("End time must be after start time")

    await db.flush()

    if appointment.status == AppointmentStatus.CANCELLED:
        await _sync_delete(db, user, appointment)
    else:
        await _sync_update(db, user, appointment, lead)

    await change_status(db, lead, status_for_appointment(lead.status, appointment.status))
    return appointment


async def delete_appointment(db: AsyncSession, user: User, appointment: Appointment) -> None:
    await _sync_delete(db, user, appointment)
    await db.delete(appointment)
    await db.flush()


async def list_for_lead(db: AsyncSession, user_id: int, lead_id: int) -> list[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.user_id == user_id)
        .where(Appointment.lead_id == lead_id)
        .order_by(Appointment.start_time.asc())
    )
    return list(result.scalars().all())


async def list_upcoming(db: AsyncSession, user_id: int, now: Optional[datetime] = None) -> list[Appointment]:
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Appointment)
        .where(Appointment.user_id == user_id)
        .where(Appointment.start_time >= now)
        .where(Appointment.status != AppointmentStatus.CANCELLED)
        .order_by(Appointment.start_time.asc())
        .limit(UPCOMING_LIMIT)
    )
    return list(result.scalars().all())


async def list_appointments(
    db: AsyncSession,
    user_id: int,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[Appointment]:
    query = select(Appointment).where(Appointment.user_id == user_id)
    if status:
        query = query.where(Appointment.status == status)
    if start_date:
        query = query.where(Appointment.start_time >= as_utc(start_date))
    if end_date:
        query = query.where(Appointment.start_time <= as_utc(end_date))
    result = await db.execute(query.order_by(Appointment.start_time.asc()))
    return list(result.scalars().all())


def serialize_appointment(appointment: Appointment, lead: Optional[Lead] = None) -> dict:
    return {
        "id": appointment.id,
        "lead_id": appointment.lead_id,
        "lead_name": lead.name if lead is not None else None,
        "title": appointment.title,
        "description": appointment.description,
        "location": appointment.location,
        "start_time": as_utc(appointment.start_time).isoformat(),
        "end_time": as_utc(appointment.end_time).isoformat(),
        "status": appointment.status,
        "source": appointment.source,
        "google_event_id": appointment.google_event_id,
        "google_event_link": appointment.google_event_link,
        "google_event_status": appointment.google_event_status,
        "created_at": to_iso(appointment.created_at),
    }
