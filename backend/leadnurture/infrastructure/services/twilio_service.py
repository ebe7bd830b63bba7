"""
SERVIÇO TWILIO (SMS)
=====================

Envio de SMS, validação de assinatura dos webhooks e respostas TwiML.

O client oficial é síncrono: as chamadas rodam em thread separada para não
travar o event loop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status
from twilio.base.exceptions import TwilioRestException
from twilio.request_validator import RequestValidator
from twilio.rest import Client
from twilio.twiml.messaging_response import MessagingResponse

from leadnurture.config import get_settings
from leadnurture.domain.exceptions import MessageDeliveryError
from leadnurture.domain.services.phone import to_e164

logger = logging.getLogger(__name__)

settings = get_settings()

_client: Optional[Client] = None


@dataclass
class SentMessage:
    sid: str
    status: str


def get_twilio_client() -> Client:
    global _client
    if _client is None:
        if not settings.twilio_configured:
            raise MessageDeliveryError("Twilio is not configured", code="TWILIO_NOT_CONFIGURED")
        _client = Client(settings.twilio_account_sid, settings.twilio_auth_token)
    return _client


async def send_sms(to: str, body: str) -> SentMessage:
    """
    Envia SMS pelo Twilio.

    Raises:
        MessageDeliveryError: com o código do Twilio (ou TWILIO_ERROR)
    """
    client = get_twilio_client()

    params = {
        "to": to_e164(to),
        "from_": settings.twilio_phone_number,
        "body": body,
    }
    if settings.status_callback_url:
        params["status_callback"] = settings.status_callback_url

    try:
        message = await asyncio.to_thread(client.messages.create, **params)
    except TwilioRestException as e:
        logger.error(f"❌ Twilio recusou SMS para {params['to']}: {e.msg}", exc_info=True)
        raise MessageDeliveryError(e.msg or str(e), code=str(e.code or "TWILIO_ERROR")) from e

    logger.info(f"📤 SMS enviado: {message.sid} -> {params['to']}")
    return SentMessage(sid=message.sid, status=message.status or "sent")


def empty_twiml() -> str:
    return str(MessagingResponse())


def public_url(request: Request) -> str:
    """URL que o Twilio assinou (atrás de proxy o host interno é diferente)."""
    if settings.backend_url:
        path = request.url.path
        query = f"?{request.url.query}" if request.url.query else ""
        return f"{settings.backend_url.rstrip('/')}{path}{query}"
    return str(request.url)


async def validate_twilio_signature(request: Request) -> None:
    """Dependency: rejeita webhooks sem assinatura válida do Twilio."""
    if not settings.twilio_validate_signature:
        return

    if not settings.twilio_auth_token:
        logger.warning("⚠️ Validação de assinatura ativa mas TWILIO_AUTH_TOKEN não configurado")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Twilio signature")

    signature = request.headers.get("X-Twilio-Signature", "")
    form = await request.form()
    params = {key: value for key, value in form.items()}

    validator = RequestValidator(settings.twilio_auth_token)
    if not validator.validate(public_url(request), params, signature):
        logger.warning(f"🚫 Assinatura Twilio inválida em {request.url.path}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Twilio signature")
