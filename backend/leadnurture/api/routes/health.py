"""
HEALTH CHECK ENDPOINTS
======================
Monitora saúde do sistema: banco, integrações configuradas e scheduler.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture import __version__
from leadnurture.api.dependencies import get_current_user
from leadnurture.config import get_settings
from leadnurture.domain.entities import User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.scheduler import get_scheduler_status, run_job_now
from leadnurture.infrastructure.scheduler.scheduler import JOBS

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Retorna 200 se tudo OK, 503 se o banco não responde.
    """
    status = "healthy"
    checks = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"❌ Health check: banco indisponível: {e}", exc_info=True)
        checks["database"] = f"error: {e}"
        status = "unhealthy"

    checks["twilio"] = "configured" if settings.twilio_configured else "not_configured"
    checks["google_calendar"] = "configured" if settings.google_configured else "not_configured"
    checks["stripe"] = "configured" if settings.stripe_configured else "not_configured"

    body = {
        "status": status,
        "version": __version__,
        "environment": settings.environment,
        "checks": checks,
        "scheduler": get_scheduler_status(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if status == "healthy" else 503, content=body)


@router.post("/jobs/{job_id}/run")
async def run_job(job_id: str, user: User = Depends(get_current_user)):
    """Executa um job agora (debug/operacional)."""
    if job_id not in JOBS:
        raise HTTPException(status_code=404, detail=f"Job '{job_id}' not found")

    logger.info(f"▶️ Job {job_id} disparado manualmente por user {user.id}")
    return await run_job_now(job_id)
