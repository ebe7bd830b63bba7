"""
ROTAS: LEADS
=============

Endpoints para gerenciar leads.
Usado pelo dashboard para cadastrar, listar, ver detalhes e atualizar.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import LeadBulkCreate, LeadCreate, LeadUpdate, ToggleAIRequest
from leadnurture.domain.entities import LeadStatus, User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.follow_up_service import (
    get_next_scheduled_message,
    schedule_follow_up,
)
from leadnurture.infrastructure.services.lead_service import (
    archive_lead,
    bulk_create_leads,
    change_status,
    create_lead,
    get_lead_for_user,
    search_leads,
    serialize_lead,
    serialize_lead_scores,
    update_lead,
    update_lead_scores,
)
from leadnurture.infrastructure.services.messaging_service import list_lead_messages, serialize_message

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("")
async def list_leads(
    search: Optional[str] = None,
    status: Optional[str] = None,
    lead_type: Optional[str] = None,
    include_archived: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Lista leads do corretor com busca (nome, email, telefone), filtros e paginação."""
    result = await search_leads(
        db,
        user.id,
        search=search,
        status=status,
        lead_type=lead_type,
        include_archived=include_archived,
        page=page,
        page_size=page_size,
    )
    result["items"] = [serialize_lead(lead) for lead in result["items"]]
    return result


@router.post("", status_code=201)
async def create(
    payload: LeadCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await create_lead(db, user.id, payload.model_dump())
    await db.commit()
    return serialize_lead(lead)


@router.post("/bulk", status_code=201)
async def create_bulk(
    payload: LeadBulkCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cadastro em lote: cada linha tem seu próprio resultado."""
    results = await bulk_create_leads(db, user.id, [row.model_dump() for row in payload.leads])
    await db.commit()
    created = sum(1 for r in results if r["success"])
    return {"created": created, "failed": len(results) - created, "results": results}


@router.get("/{lead_id}")
async def get_lead(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    return serialize_lead(lead)


@router.patch("/{lead_id}")
async def update(
    lead_id: int,
    payload: LeadUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    await update_lead(db, lead, payload.model_dump(exclude_unset=True))
    await db.commit()
    return serialize_lead(lead)


@router.delete("/{lead_id}")
async def archive(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Arquiva o lead (soft delete)."""
    lead = await get_lead_for_user(db, user.id, lead_id)
    await archive_lead(db, lead)
    await db.commit()
    return {"success": True, "lead_id": lead.id}


@router.post("/{lead_id}/toggle-ai")
async def toggle_ai(
    lead_id: int,
    payload: Optional[ToggleAIRequest] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    enabled = payload.enabled if payload and payload.enabled is not None else not lead.is_ai_enabled
    lead.is_ai_enabled = enabled
    await db.flush()
    await schedule_follow_up(db, lead)
    await db.commit()
    return serialize_lead(lead)


@router.post("/{lead_id}/qualify")
async def mark_qualified(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    await change_status(db, lead, LeadStatus.QUALIFIED.value)
    await db.commit()
    return serialize_lead(lead)


@router.get("/{lead_id}/messages")
async def get_lead_messages(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Histórico do lead, mais recentes primeiro."""
    lead = await get_lead_for_user(db, user.id, lead_id)
    messages = await list_lead_messages(db, lead.id)
    return [serialize_message(m) for m in messages]


@router.get("/{lead_id}/next-scheduled")
async def get_next_scheduled(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    message = await get_next_scheduled_message(db, lead.id)
    return {"message": serialize_message(message) if message else None}


@router.get("/{lead_id}/score")
async def get_lead_score(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    return serialize_lead_scores(lead)


@router.post("/{lead_id}/score")
async def recalculate_lead_score(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recalcula as notas com o histórico atual."""
    lead = await get_lead_for_user(db, user.id, lead_id)
    await update_lead_scores(db, lead)
    await db.commit()
    return serialize_lead_scores(lead)
