"""Configurações do corretor (criadas com valores padrão no primeiro acesso)."""

import logging
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.domain.entities import UserSettings
from leadnurture.domain.exceptions import NurtureError

logger = logging.getLogger(__name__)

INTERVAL_MIN_DAYS = 1
INTERVAL_MAX_DAYS = 365

# chave na API -> coluna em UserSettings
INTERVAL_KEYS = {
    "new": "follow_up_interval_new",
    "in_conversation": "follow_up_interval_in_conversation",
    "qualified": "follow_up_interval_qualified",
    "appointment_set": "follow_up_interval_appointment_set",
    "converted": "follow_up_interval_converted",
    "inactive": "follow_up_interval_inactive",
}

EDITABLE_FIELDS = (
    "agent_name",
    "company_name",
    "agent_city",
    "agent_state",
    "ai_assistant_enabled",
    "buyer_prompt",
    "seller_prompt",
    "follow_up_prompt",
)

PROMPT_FIELDS = ("buyer_prompt", "seller_prompt", "follow_up_prompt")


async def get_user_settings(db: AsyncSession, user_id: int) -> Optional[UserSettings]:
    result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_settings(db: AsyncSession, user_id: int) -> UserSettings:
    settings = await get_user_settings(db, user_id)
    if settings is None:
        settings = UserSettings(user_id=user_id)
        db.add(settings)
        await db.flush()
    return settings


def _validate_intervals(intervals: dict[str, Any]) -> dict[str, int]:
    validated = {}
    for key, days in intervals.items():
        if key not in INTERVAL_KEYS:
            raise NurtureError(f"Unknown follow-up interval: {key}")
        if days is None:
            continue
        if not INTERVAL_MIN_DAYS <= int(days) <= INTERVAL_MAX_DAYS:
            raise NurtureError(
                f"Follow-up interval for {key} must be between "
                f"{INTERVAL_MIN_DAYS} and {INTERVAL_MAX_DAYS} days"
            )
        validated[key] = int(days)
    return validated


async def update_settings(db: AsyncSession, settings: UserSettings, data: dict[str, Any]) -> UserSettings:
    """
    Atualização parcial. Intervalos vêm em `follow_up_intervals` ({status: dias}).

    Valida tudo antes de alterar o objeto.
    """
    intervals = _validate_intervals(data.get("follow_up_intervals") or {})

    for key, days in intervals.items():
        setattr(settings, INTERVAL_KEYS[key], days)

    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in PROMPT_FIELDS:
            # prompt vazio volta para o padrão
            if value is not None and not value.strip():
                value = None
        elif value is None:
            continue
        setattr(settings, field, value)

    await db.flush()
    logger.info(f"⚙️ Configurações atualizadas para user {settings.user_id}")
    return settings


def serialize_settings(s: UserSettings) -> dict:
    return {
        "agent_name": s.agent_name,
        "company_name": s.company_name,
        "agent_city": s.agent_city,
        "agent_state": s.agent_state,
        "ai_assistant_enabled": s.ai_assistant_enabled,
        "follow_up_intervals": {key: getattr(s, column) for key, column in INTERVAL_KEYS.items()},
        "buyer_prompt": s.buyer_prompt,
        "seller_prompt": s.seller_prompt,
        "follow_up_prompt": s.follow_up_prompt,
    }
