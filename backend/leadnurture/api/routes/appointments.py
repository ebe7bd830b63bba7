"""
ROTAS: AGENDAMENTOS
====================

CRUD de agendamentos + atalhos de status (confirmar, concluir, cancelar).
Toda alteração é refletida no Google Calendar quando o corretor conectou a conta.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import AppointmentCreate, AppointmentUpdate
from leadnurture.domain.entities import Appointment, AppointmentStatus, Lead, User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.appointment_service import (
    create_appointment,
    delete_appointment,
    get_appointment_for_user,
    list_appointments,
    list_for_lead,
    list_upcoming,
    serialize_appointment,
    update_appointment,
)
from leadnurture.infrastructure.services.lead_service import get_lead_for_user

router = APIRouter(prefix="/appointments", tags=["Agendamentos"])


async def _serialize_many(db: AsyncSession, appointments: list[Appointment]) -> list[dict]:
    leads: dict[int, Optional[Lead]] = {}
    items = []
    for appointment in appointments:
        if appointment.lead_id not in leads:
            leads[appointment.lead_id] = await db.get(Lead, appointment.lead_id)
        items.append(serialize_appointment(appointment, leads[appointment.lead_id]))
    return items


async def _set_status(db: AsyncSession, user: User, appointment_id: int, new_status: str) -> dict:
    appointment = await get_appointment_for_user(db, user.id, appointment_id)
    lead = await get_lead_for_user(db, user.id, appointment.lead_id)
    await update_appointment(db, user, appointment, lead, {"status": new_status})
    await db.commit()
    return serialize_appointment(appointment, lead)


@router.get("")
async def list_all(
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointments = await list_appointments(
        db, user.id, status=status, start_date=start_date, end_date=end_date
    )
    return await _serialize_many(db, appointments)


@router.get("/upcoming")
async def upcoming(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Próximos 10 agendamentos não cancelados."""
    return await _serialize_many(db, await list_upcoming(db, user.id))


@router.get("/lead/{lead_id}")
async def by_lead(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    appointments = await list_for_lead(db, user.id, lead.id)
    return [serialize_appointment(a, lead) for a in appointments]


@router.post("", status_code=201)
async def create(
    payload: AppointmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, payload.lead_id)
    appointment = await create_appointment(
        db,
        user,
        lead,
        title=payload.title,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        description=payload.description,
    )
    await db.commit()
    return serialize_appointment(appointment, lead)


@router.get("/{appointment_id}")
async def get_one(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await get_appointment_for_user(db, user.id, appointment_id)
    lead = await db.get(Lead, appointment.lead_id)
    return serialize_appointment(appointment, lead)


@router.patch("/{appointment_id}")
async def update(
    appointment_id: int,
    payload: AppointmentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await get_appointment_for_user(db, user.id, appointment_id)
    lead = await get_lead_for_user(db, user.id, appointment.lead_id)
    await update_appointment(db, user, appointment, lead, payload.model_dump(exclude_unset=True))
    await db.commit()
    return serialize_appointment(appointment, lead)


@router.post("/{appointment_id}/confirm")
async def confirm(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _set_status(db, user, appointment_id, AppointmentStatus.CONFIRMED)


@router.post("/{appointment_id}/complete")
async def complete(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Realizado: lead passa para Converted."""
    return await _set_status(db, user, appointment_id, AppointmentStatus.COMPLETED)


@router.post("/{appointment_id}/cancel")
async def cancel(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _set_status(db, user, appointment_id, AppointmentStatus.CANCELLED)


@router.delete("/{appointment_id}")
async def delete(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await get_appointment_for_user(db, user.id, appointment_id)
    await delete_appointment(db, user, appointment)
    await db.commit()
    return {"success": True}
