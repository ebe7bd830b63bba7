"""
PropertyService - Busca do lead e match de imóveis
===================================================

- Critérios de busca: um ativo por lead (upsert), vindos do painel ou
  extraídos da conversa pela IA ("NEW SEARCH CRITERIA: ...")
- Imóveis: importados por external_id (feed MLS/portal)
- Match: filtra candidatos no banco, calcula score e guarda os que passam de 60%
"""

import logging
from typing import Any, Optional
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leadnurture.domain.entities import (
    Lead,
    LeadInterest,
    LeadPropertySearch,
    Property,
    PropertyMatch,
    to_iso,
)
from leadnurture.domain.exceptions import NurtureError
from leadnurture.domain.services.ai_response_parser import (
    KEY_PATTERN,
    parse_search_criteria,
    parse_search_fields,
)
from leadnurture.domain.services.property_scoring import calculate_match_score, is_good_match

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 50

SEARCH_FIELDS = (
    "min_bedrooms",
    "max_bedrooms",
    "min_bathrooms",
    "max_bathrooms",
    "min_price",
    "max_price",
    "min_square_feet",
    "max_square_feet",
    "locations",
    "property_types",
    "notes",
)

PROPERTY_FIELDS = (
    "address",
    "city",
    "state",
    "zip_code",
    "price",
    "bedrooms",
    "bathrooms",
    "square_feet",
    "property_type",
    "images",
    "features",
    "description",
    "status",
)


# =============================================================================
# CRITÉRIOS DE BUSCA
# =============================================================================

async def get_active_search(db: AsyncSession, lead_id: int) -> Optional[LeadPropertySearch]:
    result = await db.execute(
        select(LeadPropertySearch)
        .where(LeadPropertySearch.lead_id == lead_id)
        .where(LeadPropertySearch.is_active == True)
        .order_by(LeadPropertySearch.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def criteria_from_text(text: str) -> dict[str, Any]:
    """Aceita a linha com marcador ou só "KEY: value, ...". Sem nenhuma chave conhecida: {}."""
    criteria = parse_search_criteria(text)
    if criteria is None and KEY_PATTERN.search(text or ""):
        criteria = parse_search_fields(text)
    return criteria or {}


async def upsert_search(
    db: AsyncSession,
    lead_id: int,
    criteria: dict[str, Any],
    original_text: Optional[str] = None,
    run_matching: bool = True,
) -> LeadPropertySearch:
    """
    Cria ou atualiza a busca ativa do lead.

    Campos ausentes em `criteria` não mexem no valor atual.
    """
    search = await get_active_search(db, lead_id)

    values: dict[str, Any] = {}
    for field in SEARCH_FIELDS:
        if field in criteria:
            value = criteria[field]
            if field in ("locations", "property_types"):
                value = list(value or [])
            values[field] = value
        else:
            values[field] = getattr(search, field) if search is not None else None

    _validate_ranges(values)

    if search is None:
        search = LeadPropertySearch(lead_id=lead_id, is_active=True)
        db.add(search)

    for field, value in values.items():
        if field in ("locations", "property_types") and value is None:
            value = []
        setattr(search, field, value)

    if original_text:
        search.original_search_text = original_text

    await db.flush()

    logger.info(f"🏠 Busca {search.id} salva para lead {lead_id}")

    if run_matching and await has_properties(db):
        await find_matches_for_search(db, search)

    return search


def _validate_ranges(values: dict[str, Any]) -> None:
    for low, high in (
        ("min_bedrooms", "max_bedrooms"),
        ("min_bathrooms", "max_bathrooms"),
        ("min_price", "max_price"),
        ("min_square_feet", "max_square_feet"),
    ):
        low_value, high_value = values.get(low), values.get(high)
        if low_value is not None and high_value is not None and low_value > high_value:
            raise NurtureError(f"{low} cannot be greater than {high}")


async def deactivate_search(db: AsyncSession, lead_id: int) -> bool:
    search = await get_active_search(db, lead_id)
    if search is None:
        return False
    search.is_active = False
    await db.flush()
    return True


def serialize_search(search: LeadPropertySearch) -> dict:
    data = {field: getattr(search, field) for field in SEARCH_FIELDS}
    data.update({
        "id": search.id,
        "lead_id": search.lead_id,
        "is_active": search.is_active,
        "original_search_text": search.original_search_text,
        "updated_at": to_iso(search.updated_at),
    })
    return data


# =============================================================================
# IMÓVEIS
# =============================================================================

async def has_properties(db: AsyncSession) -> bool:
    result = await db.execute(select(func.count(Property.id)))
    return (result.scalar() or 0) > 0


async def upsert_property(db: AsyncSession, data: dict[str, Any]) -> Property:
    external_id = data.get("external_id")
    if not external_id:
        raise NurtureError("external_id is required")

    result = await db.execute(select(Property).where(Property.external_id == external_id))
    prop = result.scalar_one_or_none()
    if prop is None:
        prop = Property(external_id=external_id, images=[], features=[], status="Active")
        db.add(prop)

    for field in PROPERTY_FIELDS:
        if field in data and data[field] is not None:
            setattr(prop, field, data[field])

    await db.flush()
    return prop


async def list_properties(
    db: AsyncSession,
    city: Optional[str] = None,
    status: Optional[str] = "Active",
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Property]:
    query = select(Property)
    if status:
        query = query.where(Property.status == status)
    if city:
        query = query.where(Property.city.ilike(f"%{city}%"))
    if min_price is not None:
        query = query.where(Property.price >= min_price)
    if max_price is not None:
        query = query.where(Property.price <= max_price)
    result = await db.execute(query.order_by(Property.id.desc()).offset(offset).limit(limit))
    return list(result.scalars().all())


async def get_property(db: AsyncSession, property_id: int) -> Property:
    prop = await db.get(Property, property_id)
    if prop is None:
        raise NurtureError("Property not found", status_code=404)
    return prop


def serialize_property(prop: Property) -> dict:
    data = {field: getattr(prop, field) for field in PROPERTY_FIELDS}
    data.update({"id": prop.id, "external_id": prop.external_id})
    return data


# =============================================================================
# MATCH
# =============================================================================

def _candidate_query(search: LeadPropertySearch):
    query = select(Property).where(Property.status == "Active")

    if search.min_bedrooms:
        query = query.where(Property.bedrooms >= search.min_bedrooms)
    if search.min_bathrooms:
        query = query.where(Property.bathrooms >= search.min_bathrooms)
    if search.min_price:
        query = query.where(Property.price >= search.min_price)
    if search.max_price:
        query = query.where(Property.price <= search.max_price)
    if search.min_square_feet:
        query = query.where(Property.square_feet >= search.min_square_feet)
    if search.property_types:
        query = query.where(Property.property_type.in_(search.property_types))

    location_filters = []
    for location in search.locations or []:
        term = (location or "").strip()
        if term:
            location_filters.extend([
                Property.city.ilike(f"%{term}%"),
                Property.zip_code.ilike(f"%{term}%"),
                Property.address.ilike(f"%{term}%"),
            ])
    if location_filters:
        query = query.where(or_(*location_filters))

    return query.limit(CANDIDATE_LIMIT)


async def find_matches_for_search(db: AsyncSession, search: LeadPropertySearch) -> int:
    """Calcula os matches da busca. Retorna quantos matches novos foram criados."""
    candidates = (await db.execute(_candidate_query(search))).scalars().all()

    existing_rows = await db.execute(
        select(PropertyMatch)
        .where(PropertyMatch.lead_id == search.lead_id)
        .where(PropertyMatch.search_id == search.id)
    )
    existing = {match.property_id: match for match in existing_rows.scalars().all()}

    created = 0
    for prop in candidates:
        score = calculate_match_score(prop, search)
        if not is_good_match(score):
            continue

        match = existing.get(prop.id)
        if match is None:
            db.add(PropertyMatch(
                lead_id=search.lead_id,
                property_id=prop.id,
                search_id=search.id,
                match_score=score,
                was_sent=False,
                was_viewed=False,
                lead_interest=LeadInterest.UNKNOWN.value,
            ))
            created += 1
        elif match.match_score != score:
            match.match_score = score

    await db.flush()
    logger.info(
        f"🔎 Busca {search.id}: {len(candidates)} candidatos, {created} matches novos",
        extra={"lead_id": search.lead_id},
    )
    return created


async def run_matching_for_all(db: AsyncSession) -> dict:
    result = await db.execute(select(LeadPropertySearch).where(LeadPropertySearch.is_active == True))
    searches = result.scalars().all()

    stats = {"searches": len(searches), "matches_created": 0, "errors": 0}
    for search in searches:
        try:
            stats["matches_created"] += await find_matches_for_search(db, search)
        except Exception as e:
            stats["errors"] += 1
            logger.error(f"❌ Erro no match da busca {search.id}: {e}", exc_info=True)
    return stats


async def get_top_matches(db: AsyncSession, lead_id: int, limit: int = 5, unsent_only: bool = True) -> list[PropertyMatch]:
    query = (
        select(PropertyMatch)
        .options(selectinload(PropertyMatch.property))
        .where(PropertyMatch.lead_id == lead_id)
    )
    if unsent_only:
        query = query.where(PropertyMatch.was_sent == False)
    query = query.order_by(PropertyMatch.match_score.desc(), PropertyMatch.id.asc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_match_for_user(db: AsyncSession, user_id: int, match_id: int) -> PropertyMatch:
    result = await db.execute(
        select(PropertyMatch)
        .options(selectinload(PropertyMatch.property))
        .join(Lead, Lead.id == PropertyMatch.lead_id)
        .where(PropertyMatch.id == match_id)
        .where(Lead.user_id == user_id)
    )
    match = result.scalar_one_or_none()
    if match is None:
        raise NurtureError("Match not found", status_code=404)
    return match


async def mark_sent(db: AsyncSession, matches: list[PropertyMatch]) -> None:
    for match in matches:
        match.was_sent = True
    await db.flush()


async def update_interest(db: AsyncSession, match: PropertyMatch, interest: str, notes: Optional[str] = None) -> PropertyMatch:
    if interest not in {i.value for i in LeadInterest}:
        raise NurtureError(f"Invalid interest: {interest}")
    match.lead_interest = interest
    match.was_viewed = True
    if notes is not None:
        match.notes = notes
    await db.flush()
    return match


def serialize_match(match: PropertyMatch) -> dict:
    return {
        "id": match.id,
        "lead_id": match.lead_id,
        "search_id": match.search_id,
        "match_score": match.match_score,
        "was_sent": match.was_sent,
        "was_viewed": match.was_viewed,
        "lead_interest": match.lead_interest,
        "notes": match.notes,
        "property": serialize_property(match.property) if match.property is not None else None,
    }
