"""
JOB DE LEADS INATIVOS
======================

Diário (02:00): leads sem mensagem há mais de INACTIVE_AFTER_DAYS dias
viram "Inactive". Agendados, convertidos e arquivados não mudam.
"""

import logging

from leadnurture.config import get_settings
from leadnurture.infrastructure.database import async_session
from leadnurture.infrastructure.services.lead_service import mark_inactive_leads

logger = logging.getLogger(__name__)

settings = get_settings()


async def run_inactive_leads_job() -> dict:
    logger.info("=" * 60)
    logger.info("💤 INICIANDO JOB DE LEADS INATIVOS")
    logger.info("=" * 60)

    stats = {"marked_inactive": 0, "errors": 0}

    try:
        async with async_session() as session:
            stats["marked_inactive"] = await mark_inactive_leads(session)
            await session.commit()
    except Exception as e:
        stats["errors"] += 1
        logger.error(f"❌ Erro crítico no job de leads inativos: {e}", exc_info=True)

    logger.info("=" * 60)
    logger.info("✅ JOB FINALIZADO")
    logger.info(f"   Limite: {settings.inactive_after_days} dias")
    logger.info(f"   Marcados como inativos: {stats['marked_inactive']}")
    logger.info(f"   Erros: {stats['errors']}")
    logger.info("=" * 60)

    return stats
