"""
JOBS DE IMÓVEIS
================

- 01:00 matching: recalcula os matches de todas as buscas ativas
- 10:00 recomendações: manda por SMS os 3 melhores matches ainda não enviados

Recomendação só vai para lead com IA ligada (lead e corretor), sem opt-out
e não arquivado.
"""

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.domain.entities import DeliveryStatus, Lead, LeadPropertySearch
from leadnurture.domain.services.property_scoring import format_recommendation_message
from leadnurture.infrastructure.database import async_session
from leadnurture.infrastructure.services.messaging_service import (
    ai_allowed,
    queue_outgoing_message,
    send_message,
)
from leadnurture.infrastructure.services.property_service import (
    get_top_matches,
    mark_sent,
    run_matching_for_all,
)
from leadnurture.infrastructure.services.settings_service import get_user_settings

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 3


# =============================================================================
# MATCHING
# =============================================================================

async def run_property_matching_job() -> dict:
    logger.info("=" * 60)
    logger.info("🏘️ INICIANDO JOB DE MATCHING DE IMÓVEIS")
    logger.info("=" * 60)

    stats = {"searches": 0, "matches_created": 0, "errors": 0}

    try:
        async with async_session() as session:
            stats = await run_matching_for_all(session)
            await session.commit()
    except Exception as e:
        stats["errors"] += 1
        logger.error(f"❌ Erro crítico no job de matching: {e}", exc_info=True)

    logger.info("=" * 60)
    logger.info("✅ JOB FINALIZADO")
    logger.info(f"   Buscas ativas: {stats['searches']}")
    logger.info(f"   Matches novos: {stats['matches_created']}")
    logger.info(f"   Erros: {stats['errors']}")
    logger.info("=" * 60)

    return stats


# =============================================================================
# RECOMENDAÇÕES
# =============================================================================

async def send_recommendations_to_lead(db: AsyncSession, lead: Lead) -> bool:
    """Envia os melhores matches não enviados. True se o SMS saiu."""
    if not ai_allowed(lead, await get_user_settings(db, lead.user_id)):
        logger.info(f"⏭️ IA desligada para lead {lead.id}, pulando recomendações")
        return False

    matches = await get_top_matches(db, lead.id, limit=RECOMMENDATION_LIMIT)
    if not matches:
        logger.debug(f"Nenhum match novo para lead {lead.id}")
        return False

    text = format_recommendation_message(lead.name, [match.property for match in matches])
    message = await queue_outgoing_message(
        db,
        lead,
        text,
        is_ai_generated=True,
        metadata={
            "is_property_recommendation": True,
            "match_ids": [match.id for match in matches],
        },
    )
    await send_message(db, message, lead)

    if message.delivery_status != DeliveryStatus.SENT.value:
        logger.warning(f"⚠️ Recomendações para lead {lead.id} não enviadas: {message.error_code}")
        return False

    await mark_sent(db, matches)
    logger.info(f"🏡 {len(matches)} imóveis recomendados para lead {lead.id}")
    return True


async def send_property_recommendations(db: AsyncSession) -> dict:
    """Um commit por lead: recomendação já enviada não volta para a fila se outro lead falhar."""
    result = await db.execute(
        select(Lead.id)
        .join(LeadPropertySearch, LeadPropertySearch.lead_id == Lead.id)
        .where(LeadPropertySearch.is_active == True)
        .where(Lead.is_archived == False)
        .distinct()
        .order_by(Lead.id)
    )
    lead_ids = result.scalars().all()

    stats = {"leads": len(lead_ids), "sent": 0, "skipped": 0, "errors": 0}
    for lead_id in lead_ids:
        try:
            lead = await db.get(Lead, lead_id)
            if await send_recommendations_to_lead(db, lead):
                stats["sent"] += 1
            else:
                stats["skipped"] += 1
            await db.commit()
        except Exception as e:
            stats["errors"] += 1
            logger.error(f"❌ Erro nas recomendações do lead {lead_id}: {e}", exc_info=True)
            await db.rollback()
    return stats


async def run_property_recommendations_job() -> dict:
    logger.info("=" * 60)
    logger.info("📨 INICIANDO JOB DE RECOMENDAÇÕES DE IMÓVEIS")
    logger.info("=" * 60)

    stats = {"leads": 0, "sent": 0, "skipped": 0, "errors": 0}

    try:
        async with async_session() as session:
            stats = await send_property_recommendations(session)
            await session.commit()
    except Exception as e:
        stats["errors"] += 1
        logger.error(f"❌ Erro crítico no job de recomendações: {e}", exc_info=True)

    logger.info("=" * 60)
    logger.info("✅ JOB FINALIZADO")
    logger.info(f"   Leads com busca ativa: {stats['leads']}")
    logger.info(f"   Enviados: {stats['sent']}")
    logger.info(f"   Pulados: {stats['skipped']}")
    logger.info(f"   Erros: {stats['errors']}")
    logger.info("=" * 60)

    return stats
