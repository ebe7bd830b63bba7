"""
ROTAS: CONFIGURAÇÕES DO CORRETOR
=================================

Identidade usada nos prompts, intervalos de follow-up e prompts customizados.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import SettingsUpdate
from leadnurture.domain.entities import User
from leadnurture.domain.prompts import (
    DEFAULT_BUYER_PROMPT,
    DEFAULT_FOLLOW_UP_PROMPT,
    DEFAULT_SELLER_PROMPT,
    SUPPORTED_VARIABLES,
)
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.settings_service import (
    get_or_create_settings,
    serialize_settings,
    update_settings,
)

router = APIRouter(prefix="/settings", tags=["Configurações"])


@router.get("")
async def get_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Configurações atuais (criadas com padrões no primeiro acesso)."""
    user_settings = await get_or_create_settings(db, user.id)
    await db.commit()
    return serialize_settings(user_settings)


@router.patch("")
async def patch_settings(
    payload: SettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_settings = await get_or_create_settings(db, user.id)
    await update_settings(db, user_settings, payload.model_dump(exclude_unset=True))
    await db.commit()
    return serialize_settings(user_settings)


@router.get("/prompts/defaults")
async def default_prompts(user: User = Depends(get_current_user)):
    """Prompts padrão e variáveis aceitas ({{agent_name}}, {{lead_name}}, ...)."""
    return {
        "buyer_prompt": DEFAULT_BUYER_PROMPT,
        "seller_prompt": DEFAULT_SELLER_PROMPT,
        "follow_up_prompt": DEFAULT_FOLLOW_UP_PROMPT,
        "variables": SUPPORTED_VARIABLES,
    }
