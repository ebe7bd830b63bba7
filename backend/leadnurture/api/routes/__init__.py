"""Rotas da API."""

from .auth import router as auth_router
from .leads import router as leads_router
from .messages import router as messages_router
from .appointments import router as appointments_router
from .notifications import router as notifications_router
from .settings import router as settings_router
from .search_criteria import router as search_criteria_router
from .properties import router as properties_router
from .calendar import router as calendar_router
from .billing import router as billing_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "leads_router",
    "messages_router",
    "appointments_router",
    "notifications_router",
    "settings_router",
    "search_criteria_router",
    "properties_router",
    "calendar_router",
    "billing_router",
    "health_router",
]
