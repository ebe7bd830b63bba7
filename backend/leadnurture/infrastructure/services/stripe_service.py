"""
SERVIÇO DE COBRANÇA (STRIPE)
=============================

- Checkout de assinatura (um preço configurado em STRIPE_PRICE_ID)
- Webhook: checkout concluído e mudanças na assinatura atualizam o User
- Status da assinatura para o painel

O SDK do Stripe é síncrono: as chamadas rodam em thread.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional
import stripe
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.config import get_settings
from leadnurture.domain.entities import SubscriptionStatus, User, to_iso
from leadnurture.domain.exceptions import BillingError

logger = logging.getLogger(__name__)

settings = get_settings()

HANDLED_EVENTS = (
    "checkout.session.completed",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


def _configure() -> None:
    if not settings.stripe_configured:
        raise BillingError("Stripe is not configured", status_code=503)
    stripe.api_key = settings.stripe_secret_key


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Objetos do Stripe e dicts do payload aceitam o mesmo acesso."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


# =============================================================================
# CHECKOUT
# =============================================================================

async def get_or_create_customer(db: AsyncSession, user: User) -> str:
    """Reaproveita o customer salvo, depois busca por email, por fim cria."""
    _configure()

    if user.stripe_customer_id:
        return user.stripe_customer_id

    try:
        customers = await asyncio.to_thread(stripe.Customer.list, email=user.email, limit=1)
        if customers.data:
            customer = customers.data[0]
            logger.info(f"✅ Customer existente encontrado: {customer.id}")
        else:
            customer = await asyncio.to_thread(
                stripe.Customer.create,
                email=user.email,
                name=user.name,
                metadata={"user_id": str(user.id)},
            )
            logger.info(f"✅ Customer criado: {customer.id}")
    except stripe.StripeError as e:
        logger.error(f"❌ Erro ao criar/buscar customer: {e}", exc_info=True)
        raise BillingError(f"Customer creation failed: {e}", status_code=502)

    user.stripe_customer_id = customer.id
    await db.flush()
    return customer.id


async def create_checkout_session(db: AsyncSession, user: User) -> dict:
    customer_id = await get_or_create_customer(db, user)
    frontend = settings.frontend_url.rstrip("/")

    session_params = {
        "payment_method_types": ["card"],
        "line_items": [{"price": settings.stripe_price_id, "quantity": 1}],
        "mode": "subscription",
        "customer": customer_id,
        "client_reference_id": str(user.id),
        "subscription_data": {"metadata": {"user_id": str(user.id)}},
        "metadata": {"user_id": str(user.id)},
        "success_url": f"{frontend}/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{frontend}/billing/cancel",
    }

    try:
        session = await asyncio.to_thread(stripe.checkout.Session.create, **session_params)
    except stripe.StripeError as e:
        logger.error(f"💥 Erro ao criar checkout: {e}", exc_info=True)
        raise BillingError(f"Checkout session failed: {e}", status_code=502)

    logger.info(f"🚀 Checkout {session.id} criado para usuário {user.id}")
    return {"session_id": session.id, "url": session.url}


# =============================================================================
# WEBHOOK
# =============================================================================

def construct_event(payload: bytes, signature: Optional[str]) -> Any:
    """Valida a assinatura. Payload ou assinatura inválidos -> BillingError (400)."""
    if not settings.stripe_webhook_secret:
        raise BillingError("Stripe webhook secret is not configured", status_code=503)
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.stripe_webhook_secret)
    except ValueError:
        raise BillingError("Invalid payload")
    except stripe.SignatureVerificationError:
        raise BillingError("Invalid signature")


async def _find_user(
    db: AsyncSession,
    user_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
) -> Optional[User]:
    if user_id and str(user_id).isdigit():
        user = await db.get(User, int(user_id))
        if user is not None:
            return user

    filters = []
    if customer_id:
        filters.append(User.stripe_customer_id == customer_id)
    if subscription_id:
        filters.append(User.stripe_subscription_id == subscription_id)
    if not filters:
        return None

    result = await db.execute(select(User).where(or_(*filters)).limit(1))
    return result.scalar_one_or_none()


def _apply_subscription(user: User, subscription: Any) -> None:
    user.stripe_subscription_id = _get(subscription, "id", user.stripe_subscription_id)
    user.subscription_status = _get(subscription, "status", user.subscription_status)

    period_end = _from_timestamp(_get(subscription, "current_period_end"))
    if period_end is not None:
        user.subscription_current_period_end = period_end

    items = _get(_get(subscription, "items"), "data", [])
    if items:
        price = _get(items[0], "price")
        user.subscription_plan = _get(price, "nickname") or _get(price, "id") or user.subscription_plan


async def _handle_checkout_completed(db: AsyncSession, session: Any) -> Optional[User]:
    metadata = _get(session, "metadata", {})
    user = await _find_user(
        db,
        user_id=_get(session, "client_reference_id") or _get(metadata, "user_id"),
        customer_id=_get(session, "customer"),
    )
    if user is None:
        logger.error(f"❌ Checkout {_get(session, 'id')} sem usuário correspondente")
        return None

    user.stripe_customer_id = _get(session, "customer", user.stripe_customer_id)
    user.stripe_subscription_id = _get(session, "subscription", user.stripe_subscription_id)
    user.subscription_status = SubscriptionStatus.ACTIVE.value
    user.subscription_plan = user.subscription_plan or settings.stripe_price_id

    logger.info(f"🎉 Assinatura ativada para usuário {user.id}")
    return user


async def _handle_subscription_change(db: AsyncSession, subscription: Any, deleted: bool) -> Optional[User]:
    metadata = _get(subscription, "metadata", {})
    user = await _find_user(
        db,
        user_id=_get(metadata, "user_id"),
        customer_id=_get(subscription, "customer"),
        subscription_id=_get(subscription, "id"),
    )
    if user is None:
        logger.warning(f"⚠️ Assinatura {_get(subscription, 'id')} sem usuário correspondente")
        return None

    _apply_subscription(user, subscription)
    if deleted:
        user.subscription_status = SubscriptionStatus.CANCELED.value

    logger.info(f"💳 Assinatura do usuário {user.id}: {user.subscription_status}")
    return user


async def handle_event(db: AsyncSession, event: Any) -> dict:
    """Despacha o evento. Tipos não tratados são só confirmados."""
    event_type = _get(event, "type")
    obj = _get(_get(event, "data"), "object")

    if event_type not in HANDLED_EVENTS:
        logger.debug(f"Evento Stripe ignorado: {event_type}")
        return {"received": True, "handled": False}

    if event_type == "checkout.session.completed":
        user = await _handle_checkout_completed(db, obj)
    else:
        user = await _handle_subscription_change(
            db, obj, deleted=event_type == "customer.subscription.deleted"
        )

    await db.flush()
    return {"received": True, "handled": user is not None, "user_id": user.id if user else None}


# =============================================================================
# STATUS
# =============================================================================

def subscription_info(user: User) -> dict:
    return {
        "status": user.subscription_status,
        "plan": user.subscription_plan,
        "customer_id": user.stripe_customer_id,
        "subscription_id": user.stripe_subscription_id,
        "current_period_end": to_iso(user.subscription_current_period_end),
        "is_active": user.subscription_status in (
            SubscriptionStatus.ACTIVE.value,
            SubscriptionStatus.TRIALING.value,
        ),
    }
