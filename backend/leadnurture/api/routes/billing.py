"""
ROTAS: COBRANÇA (STRIPE)
=========================

Checkout da assinatura, webhook do Stripe e status atual.
"""

import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.domain.entities import User
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services import stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Cobrança"])


@router.post("/checkout")
async def create_checkout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cria a sessão de checkout; o front redireciona para `url`."""
    session = await stripe_service.create_checkout_session(db, user)
    await db.commit()
    return session


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    payload = await request.body()
    event = stripe_service.construct_event(payload, request.headers.get("Stripe-Signature"))

    logger.info(f"💳 Webhook Stripe recebido: {event['type']}")
    result = await stripe_service.handle_event(db, event)
    await db.commit()
    return result


@router.get("/subscription")
async def subscription_status(user: User = Depends(get_current_user)):
    return stripe_service.subscription_info(user)
