"""
LEADNURTURE API - Ponto de Entrada
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadnurture import __version__
from leadnurture.config import get_settings
from leadnurture.domain.exceptions import NurtureError
from leadnurture.infrastructure.database import init_db
from leadnurture.infrastructure.logging_config import setup_logging
from leadnurture.infrastructure.scheduler import create_scheduler, start_scheduler, stop_scheduler

# Routers
from leadnurture.api.routes import (
    auth_router,
    leads_router,
    messages_router,
    appointments_router,
    notifications_router,
    settings_router,
    search_criteria_router,
    properties_router,
    calendar_router,
    billing_router,
    health_router,
)

settings = get_settings()
logger = logging.getLogger(__name__)


# ============================================================
# 🔁 LIFESPAN
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(logging.DEBUG if settings.debug else logging.INFO)
    logger.info(f"🚀 Iniciando LeadNurture API ({settings.environment})...")

    if settings.is_development:
        await init_db()
        logger.info("✅ Tabelas criadas!")

    if settings.scheduler_enabled:
        create_scheduler()
        start_scheduler()

    yield

    stop_scheduler()
    logger.info("👋 Encerrando LeadNurture API...")


# ============================================================
# FASTAPI APP
# ============================================================
app = FastAPI(
    title="LeadNurture API",
    description="Nutrição de leads imobiliários por SMS com IA",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(NurtureError)
async def nurture_error_handler(request: Request, exc: NurtureError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ============================================================
# ⭐ CORS
# ============================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================
# ROTAS
# ============================================================
app.include_router(auth_router, prefix="/api/v1")
app.include_router(leads_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(appointments_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1")
app.include_router(search_criteria_router, prefix="/api/v1")
app.include_router(properties_router, prefix="/api/v1")
app.include_router(calendar_router, prefix="/api/v1")
app.include_router(billing_router, prefix="/api/v1")
app.include_router(health_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"name": "LeadNurture API", "version": __version__, "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
