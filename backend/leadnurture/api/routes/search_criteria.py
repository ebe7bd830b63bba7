"""
ROTAS: CRITÉRIOS DE BUSCA DO LEAD
==================================

Uma busca ativa por lead. Aceita os campos soltos ou o texto no formato
da IA ("NEW SEARCH CRITERIA: MIN BEDROOMS: 3, ...") em `text`.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import MatchInterestUpdate, SearchCriteriaUpsert
from leadnurture.domain.entities import User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.lead_service import get_lead_for_user
from leadnurture.infrastructure.services.property_service import (
    criteria_from_text,
    deactivate_search,
    get_active_search,
    get_match_for_user,
    get_top_matches,
    serialize_match,
    serialize_search,
    update_interest,
    upsert_search,
)

router = APIRouter(prefix="/search-criteria", tags=["Busca de Imóveis"])


@router.get("/lead/{lead_id}")
async def get_criteria(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    search = await get_active_search(db, lead.id)
    return {"search": serialize_search(search) if search else None}


@router.put("/lead/{lead_id}")
async def put_criteria(
    lead_id: int,
    payload: SearchCriteriaUpsert,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)

    data = payload.model_dump(exclude_unset=True)
    text = data.pop("text", None)
    if text:
        parsed = criteria_from_text(text)
        if not parsed:
            raise HTTPException(status_code=400, detail="Could not parse search criteria text")
        # campos explícitos têm prioridade sobre o texto
        data = {**parsed, **data}

    search = await upsert_search(db, lead.id, data, original_text=text)
    await db.commit()
    return {"search": serialize_search(search)}


@router.delete("/lead/{lead_id}")
async def delete_criteria(
    lead_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await get_lead_for_user(db, user.id, lead_id)
    if not await deactivate_search(db, lead.id):
        raise HTTPException(status_code=404, detail="No active search for this lead")
    await db.commit()
    return {"success": True}


@router.get("/lead/{lead_id}/matches")
async def lead_matches(
    lead_id: int,
    limit: int = Query(10, ge=1, le=50),
    unsent_only: bool = False,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Matches do lead, melhor score primeiro."""
    lead = await get_lead_for_user(db, user.id, lead_id)
    matches = await get_top_matches(db, lead.id, limit=limit, unsent_only=unsent_only)
    return [serialize_match(m) for m in matches]


@router.patch("/matches/{match_id}")
async def match_interest(
    match_id: int,
    payload: MatchInterestUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    match = await get_match_for_user(db, user.id, match_id)
    await update_interest(db, match, payload.lead_interest, payload.notes)
    await db.commit()
    return serialize_match(match)
