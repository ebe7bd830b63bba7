"""
SCHEDULER DE JOBS PERIÓDICOS
=============================

Gerencia a execução de tarefas agendadas.

JOBS CONFIGURADOS:
- Mensagens agendadas (follow-ups): a cada minuto
- Matching de imóveis: diário, 01:00
- Leads inativos: diário, 02:00
- Recomendações de imóveis: diário, 10:00

TECNOLOGIA: APScheduler (AsyncIOScheduler)
"""

import logging
from typing import Awaitable, Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from leadnurture.config import get_settings
from leadnurture.infrastructure.jobs.lead_jobs import run_inactive_leads_job
from leadnurture.infrastructure.jobs.message_jobs import run_due_messages_job
from leadnurture.infrastructure.jobs.property_jobs import (
    run_property_matching_job,
    run_property_recommendations_job,
)

logger = logging.getLogger(__name__)

settings = get_settings()

# id -> função do job (também usado por run_job_now)
JOBS: dict[str, Callable[[], Awaitable[dict]]] = {
    "due_messages_job": run_due_messages_job,
    "property_matching_job": run_property_matching_job,
    "inactive_leads_job": run_inactive_leads_job,
    "property_recommendations_job": run_property_recommendations_job,
}

# Instância global do scheduler
scheduler: Optional[AsyncIOScheduler] = None


def create_scheduler() -> AsyncIOScheduler:
    """
    Cria e configura o scheduler.

    CHAMADO POR: main.py no startup
    """
    global scheduler

    if scheduler is not None:
        logger.warning("⚠️ Scheduler já existe, retornando instância existente")
        return scheduler

    logger.info("🔧 Criando scheduler...")

    scheduler = AsyncIOScheduler(
        timezone=settings.timezone,
        job_defaults={
            "coalesce": True,  # Agrupa execuções perdidas
            "max_instances": 1,  # Só uma instância por vez
            "misfire_grace_time": 60 * 5,  # 5 minutos de tolerância
        }
    )

    # =========================================================================
    # REGISTRA OS JOBS
    # =========================================================================

    scheduler.add_job(
        run_due_messages_job,
        trigger=IntervalTrigger(minutes=1),
        id="due_messages_job",
        name="Mensagens Agendadas",
        replace_existing=True,
    )
    scheduler.add_job(
        run_property_matching_job,
        trigger=CronTrigger(hour=1, minute=0),
        id="property_matching_job",
        name="Matching de Imóveis",
        replace_existing=True,
    )
    scheduler.add_job(
        run_inactive_leads_job,
        trigger=CronTrigger(hour=2, minute=0),
        id="inactive_leads_job",
        name="Leads Inativos",
        replace_existing=True,
    )
    scheduler.add_job(
        run_property_recommendations_job,
        trigger=CronTrigger(hour=10, minute=0),
        id="property_recommendations_job",
        name="Recomendações de Imóveis",
        replace_existing=True,
    )

    logger.info(f"✅ Scheduler criado com {len(JOBS)} jobs ({settings.timezone})")

    return scheduler


def start_scheduler():
    """
    Inicia o scheduler.

    CHAMADO POR: main.py no startup (depois de create_scheduler)
    """
    if scheduler is None:
        logger.error("❌ Scheduler não foi criado. Chame create_scheduler() primeiro.")
        return

    if scheduler.running:
        logger.warning("⚠️ Scheduler já está rodando")
        return

    scheduler.start()
    logger.info("🚀 Scheduler iniciado!")

    jobs = scheduler.get_jobs()
    logger.info(f"📋 Jobs ativos: {len(jobs)}")
    for job in jobs:
        logger.info(f"   - {job.name} (próxima execução: {job.next_run_time})")


def stop_scheduler():
    """
    Para o scheduler.

    CHAMADO POR: main.py no shutdown
    """
    global scheduler

    if scheduler is None:
        return

    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("🛑 Scheduler parado")

    scheduler = None


def get_scheduler_status() -> dict:
    """Status do scheduler para o health check."""
    if scheduler is None:
        return {
            "running": False,
            "jobs": [],
            "error": "Scheduler não inicializado",
        }

    jobs_info = []
    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs_info.append({
            "id": job.id,
            "name": job.name,
            "next_run": str(next_run) if next_run else None,
        })

    return {
        "running": scheduler.running,
        "jobs": jobs_info,
    }


async def run_job_now(job_id: str) -> dict:
    """
    Executa um job imediatamente (fora do agendamento).

    Não depende do scheduler estar rodando.
    """
    job = JOBS.get(job_id)
    if job is None:
        return {"success": False, "error": f"Job '{job_id}' não encontrado"}

    try:
        result = await job()
        return {"success": True, "result": result}
    except Exception as e:
        logger.error(f"❌ Erro ao executar job {job_id}: {e}", exc_info=True)
        return {"success": False, "error": str(e)}
