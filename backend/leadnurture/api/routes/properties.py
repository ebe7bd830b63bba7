"""
ROTAS: IMÓVEIS
===============

Catálogo de imóveis (importado por external_id) e disparo manual do matching.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import PropertyUpsert
from leadnurture.domain.entities import User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.property_service import (
    get_property,
    list_properties,
    run_matching_for_all,
    serialize_property,
    upsert_property,
)

router = APIRouter(prefix="/properties", tags=["Imóveis"])


@router.get("")
async def list_all(
    city: Optional[str] = None,
    status: Optional[str] = "Active",
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    properties = await list_properties(
        db,
        city=city,
        status=status,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
        offset=offset,
    )
    return [serialize_property(p) for p in properties]


@router.post("")
async def upsert(
    payload: PropertyUpsert,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cria ou atualiza pelo external_id."""
    prop = await upsert_property(db, payload.model_dump())
    await db.commit()
    return serialize_property(prop)


@router.post("/match")
async def run_matching(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recalcula os matches de todas as buscas ativas agora."""
    stats = await run_matching_for_all(db)
    await db.commit()
    return stats


@router.get("/{property_id}")
async def get_one(
    property_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return serialize_property(await get_property(db, property_id))
