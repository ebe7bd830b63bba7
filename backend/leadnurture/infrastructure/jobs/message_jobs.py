"""
JOB DE MENSAGENS AGENDADAS
===========================

Roda a cada minuto: envia toda mensagem `queued` com scheduled_at vencido.
Follow-ups chegam aqui sem texto e são escritos pela IA na hora do envio.
"""

import logging

from leadnurture.infrastructure.database import async_session
from leadnurture.infrastructure.services.messaging_service import process_due_messages

logger = logging.getLogger(__name__)


async def run_due_messages_job() -> dict:
    """Função que o scheduler chama a cada minuto."""
    stats = {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}

    try:
        async with async_session() as session:
            stats = await process_due_messages(session)
            await session.commit()
    except Exception as e:
        logger.error(f"❌ Erro crítico no job de mensagens agendadas: {e}", exc_info=True)
        stats["errors"] = 1
        return stats

    # Só loga quando houve trabalho (roda a cada minuto)
    if stats["processed"]:
        logger.info(
            f"📤 Mensagens agendadas: {stats['processed']} processadas, "
            f"{stats['sent']} enviadas, {stats['failed']} falharam, {stats['skipped']} canceladas"
        )
    return stats
