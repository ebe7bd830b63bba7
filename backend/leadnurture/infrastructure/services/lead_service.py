"""
SERVIÇO DE LEADS
=================

Criação (com validação de telefone), busca paginada, mudança de status
(sempre reagendando o follow-up), arquivamento, inativação automática e
notas do lead (interesse, sentimento, geral).
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import Lead, LeadStatus, LeadType, Message, MessageSender, to_iso
from leadnurture.domain.exceptions import LeadNotFoundError, NurtureError
from leadnurture.domain.services.lead_scoring import LeadScores, calculate_scores, score_explanation
from leadnurture.domain.services.lead_status import apply_status, should_mark_inactive, PROTECTED_FROM_INACTIVE
from leadnurture.domain.services.phone import validate_phone, digits_only
from leadnurture.infrastructure.services.follow_up_service import (
    schedule_follow_up,
    cancel_pending_follow_ups,
)

logger = logging.getLogger(__name__)

settings = get_settings()


class DuplicateLeadError(NurtureError):
    status_code = 409


async def get_lead_for_user(db: AsyncSession, user_id: int, lead_id: int) -> Lead:
    result = await db.execute(
        select(Lead).where(Lead.id == lead_id).where(Lead.user_id == user_id)
    )
    lead = result.scalar_one_or_none()
    if lead is None:
        raise LeadNotFoundError(lead_id)
    return lead


async def find_lead_by_phone(db: AsyncSession, phone: str) -> Optional[Lead]:
    """Busca lead ativo pelo telefone normalizado (webhook do Twilio)."""
    result = await db.execute(
        select(Lead)
        .where(Lead.phone_number == phone)
        .where(Lead.is_archived == False)
        .order_by(Lead.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_lead(db: AsyncSession, user_id: int, data: dict[str, Any]) -> Lead:
    """
    Cria lead e agenda o primeiro follow-up.

    Raises:
        NurtureError (400): telefone inválido
        DuplicateLeadError (409): telefone já cadastrado para o corretor
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise NurtureError("Lead name is required")

    is_valid, phone, error = validate_phone(data.get("phone_number"))
    if not is_valid:
        raise NurtureError(error)

    lead_type = data.get("lead_type") or LeadType.BUYER.value
    if lead_type not in {t.value for t in LeadType}:
        raise NurtureError(f"Invalid lead type: {lead_type}")

    existing = await db.execute(
        select(Lead.id).where(Lead.user_id == user_id).where(Lead.phone_number == phone)
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateLeadError(f"A lead with phone number {phone} already exists")

    lead = Lead(
        user_id=user_id,
        name=name,
        email=data.get("email"),
        phone_number=phone,
        lead_type=lead_type,
        context=data.get("context"),
        status=LeadStatus.NEW.value,
        is_ai_enabled=data.get("is_ai_enabled", True),
        enable_follow_ups=data.get("enable_follow_ups", True),
        follow_up_count=0,
        opted_out=False,
        is_archived=False,
    )
    db.add(lead)
    await db.flush()

    await schedule_follow_up(db, lead)

    logger.info(f"✨ Novo lead criado: {lead.id}", extra={"user_id": user_id})
    return lead


async def bulk_create_leads(db: AsyncSession, user_id: int, rows: list[dict[str, Any]]) -> list[dict]:
    """
    Cria vários leads; cada linha tem seu próprio resultado (falhas não abortam as demais).

    create_lead valida tudo antes de escrever, então uma linha inválida não
    deixa nada pendente na sessão.
    """
    results = []
    for index, row in enumerate(rows):
        try:
            lead = await create_lead(db, user_id, row)
            results.append({"index": index, "success": True, "lead_id": lead.id})
        except NurtureError as e:
            results.append({"index": index, "success": False, "error": e.message})
    return results


async def search_leads(
    db: AsyncSession,
    user_id: int,
    search: Optional[str] = None,
    status: Optional[str] = None,
    lead_type: Optional[str] = None,
    include_archived: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    query = select(Lead).where(Lead.user_id == user_id)

    if not include_archived:
        query = query.where(Lead.is_archived == False)
    if status:
        query = query.where(Lead.status == status)
    if lead_type:
        query = query.where(Lead.lead_type == lead_type)
    if search:
        term = f"%{search.strip()}%"
        conditions = [Lead.name.ilike(term), Lead.email.ilike(term)]
        digits = digits_only(search)
        if digits:
            conditions.append(Lead.phone_number.ilike(f"%{digits}%"))
        query = query.where(or_(*conditions))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = query.order_by(Lead.created_at.desc(), Lead.id.desc())
    query = query.offset((page - 1) * page_size).limit(page_size)
    items = list((await db.execute(query)).scalars().all())

    return {
        "items": items,
        "total": total,
        "total_pages": math.ceil(total / page_size) if total else 0,
        "current_page": page,
    }


async def change_status(db: AsyncSession, lead: Lead, new_status: str) -> bool:
    """Aplica o status e reagenda o follow-up quando houve mudança."""
    previous = lead.status
    changed = apply_status(lead, new_status)
    if changed:
        await db.flush()
        await schedule_follow_up(db, lead)
        logger.info(f"🔀 Lead {lead.id}: {previous} -> {new_status}")
    return changed


async def update_lead(db: AsyncSession, lead: Lead, data: dict[str, Any]) -> Lead:
    if "phone_number" in data and data["phone_number"] is not None:
        is_valid, phone, error = validate_phone(data.pop("phone_number"))
        if not is_valid:
            raise NurtureError(error)
        if phone != lead.phone_number:
            existing = await db.execute(
                select(Lead.id)
                .where(Lead.user_id == lead.user_id)
                .where(Lead.phone_number == phone)
                .where(Lead.id != lead.id)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateLeadError(f"A lead with phone number {phone} already exists")
            lead.phone_number = phone

    new_status = data.pop("status", None)
    if data.get("lead_type") is not None and data["lead_type"] not in {t.value for t in LeadType}:
        raise NurtureError(f"Invalid lead type: {data['lead_type']}")

    reschedule = False
    for field in ("name", "email", "context", "lead_type", "is_ai_enabled", "enable_follow_ups"):
        if field in data and data[field] is not None:
            if field in ("is_ai_enabled", "enable_follow_ups") and getattr(lead, field) != data[field]:
                reschedule = True
            setattr(lead, field, data[field])

    await db.flush()

    if new_status:
        try:
            changed = await change_status(db, lead, new_status)
        except ValueError as e:
            raise NurtureError(str(e)) from e
        reschedule = reschedule and not changed

    if reschedule:
        await schedule_follow_up(db, lead)

    return lead


async def archive_lead(db: AsyncSession, lead: Lead) -> Lead:
    """Soft delete: some das listagens e não recebe mais mensagens."""
    lead.is_archived = True
    await cancel_pending_follow_ups(db, lead.id)
    await db.flush()
    logger.info(f"🗄️ Lead {lead.id} arquivado")
    return lead


async def mark_inactive_leads(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Leads sem conversa há `inactive_after_days` dias passam para Inactive."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Lead)
        .where(Lead.is_archived == False)
        .where(Lead.last_message_at.is_not(None))
        .where(Lead.status.not_in(PROTECTED_FROM_INACTIVE))
    )
    count = 0
    for lead in result.scalars().all():
        if should_mark_inactive(lead, now, settings.inactive_after_days):
            await change_status(db, lead, LeadStatus.INACTIVE.value)
            count += 1
    return count


async def update_lead_scores(db: AsyncSession, lead: Lead) -> LeadScores:
    """Recalcula as notas com todas as mensagens recebidas do lead."""
    result = await db.execute(
        select(Message)
        .where(Message.lead_id == lead.id)
        .where(Message.sender == MessageSender.LEAD.value)
    )
    scores = calculate_scores(result.scalars().all())

    lead.interest_score = scores.interest
    lead.sentiment_score = scores.sentiment
    lead.overall_score = scores.overall
    lead.last_score_update = datetime.now(timezone.utc)
    await db.flush()

    logger.info(
        f"📊 Notas do lead {lead.id}: interesse={scores.interest}, "
        f"sentimento={scores.sentiment}, geral={scores.overall}"
    )
    return scores


def serialize_lead_scores(lead: Lead) -> dict:
    scores = {
        "interest_score": lead.interest_score,
        "sentiment_score": lead.sentiment_score,
        "overall_score": lead.overall_score,
        "last_score_update": to_iso(lead.last_score_update),
        "explanation": None,
    }
    if lead.overall_score is not None:
        scores["explanation"] = score_explanation(
            LeadScores(lead.interest_score, lead.sentiment_score, lead.overall_score)
        )
    return scores


def serialize_lead(lead: Lead) -> dict:
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "phone_number": lead.phone_number,
        "status": lead.status,
        "lead_type": lead.lead_type,
        "context": lead.context,
        "is_ai_enabled": lead.is_ai_enabled,
        "enable_follow_ups": lead.enable_follow_ups,
        "follow_up_count": lead.follow_up_count,
        "opted_out": lead.opted_out,
        "is_archived": lead.is_archived,
        "last_message_at": to_iso(lead.last_message_at),
        "interest_score": lead.interest_score,
        "sentiment_score": lead.sentiment_score,
        "overall_score": lead.overall_score,
        "created_at": to_iso(lead.created_at),
    }
