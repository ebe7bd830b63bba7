"""
SERVIÇO OPENAI
===============

Integração com a API da OpenAI para o assistente de SMS.

Fluxo:
1. Monta o prompt de sistema (tipo do lead + configurações do corretor)
2. Converte o histórico (lead -> user, corretor/IA -> assistant)
3. Chama o modelo
4. Extrai marcadores (agendamento, critérios de busca) e limpa o texto
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo
from openai import AsyncOpenAI

from leadnurture.config import get_settings
from leadnurture.domain.entities import (
    Lead,
    LeadStatus,
    LeadType,
    Message,
    MessageSender,
    DeliveryStatus,
    UserSettings,
    as_utc,
)
from leadnurture.domain.prompts import build_system_prompt
from leadnurture.domain.services.ai_response_parser import ParsedAIResponse, handle_response

logger = logging.getLogger(__name__)

settings = get_settings()

# Cliente OpenAI (singleton)
client = AsyncOpenAI(api_key=settings.openai_api_key)

# Mensagens que não fazem parte da conversa real
_EXCLUDED_STATUSES = {DeliveryStatus.QUEUED.value, DeliveryStatus.CANCELED.value}


def local_now(now: Optional[datetime] = None) -> datetime:
    """"Hoje" e "amanhã" do prompt seguem o fuso do corretor, não o UTC."""
    return as_utc(now or datetime.now(timezone.utc)).astimezone(ZoneInfo(settings.timezone))


async def chat_completion(
    messages: list[dict],
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> dict:
    """
    Envia mensagens para OpenAI e retorna resposta.
    """
    response = await client.chat.completions.create(
        model=model or settings.openai_model,
        messages=messages,
        temperature=settings.openai_temperature if temperature is None else temperature,
        max_tokens=max_tokens or settings.openai_max_tokens,
        frequency_penalty=settings.openai_frequency_penalty,
        presence_penalty=settings.openai_presence_penalty,
    )

    return {
        "content": response.choices[0].message.content or "",
        "tokens_used": response.usage.total_tokens if response.usage else 0,
    }


def history_to_chat(history: Iterable[Message]) -> list[dict]:
    """Histórico em ordem cronológica no formato da OpenAI."""
    chat = []
    for msg in history:
        if msg.delivery_status in _EXCLUDED_STATUSES or not (msg.text or "").strip():
            continue
        role = "user" if msg.sender == MessageSender.LEAD.value else "assistant"
        chat.append({"role": role, "content": msg.text})
    return chat


async def generate_response(
    lead: Lead,
    history: Iterable[Message],
    user_settings: Optional[UserSettings],
    now: Optional[datetime] = None,
    follow_up: bool = False,
) -> ParsedAIResponse:
    """
    Gera a próxima mensagem para o lead.

    Returns:
        ParsedAIResponse com o texto já sem marcadores e os dados extraídos
    """
    now = local_now(now)
    system_prompt = build_system_prompt(lead, user_settings, now, follow_up=follow_up)

    messages = [{"role": "system", "content": system_prompt}]
    messages.extend(history_to_chat(history))

    if follow_up:
        messages.append({
            "role": "user",
            "content": "(The lead has not replied. Write the follow-up text message now.)",
        })

    logger.info(
        f"🤖 Gerando resposta IA para lead {lead.id} ({len(messages) - 1} mensagens no contexto)",
        extra={"lead_id": lead.id, "follow_up": follow_up},
    )

    result = await chat_completion(messages)
    parsed = handle_response(result["content"])
    parsed.tokens_used = result["tokens_used"]

    if parsed.has_appointment:
        logger.info(f"📅 IA marcou agendamento: {parsed.appointment.date} {parsed.appointment.time}")
    if parsed.has_search_criteria:
        logger.info(f"🏠 IA extraiu critérios de busca para lead {lead.id}")

    return parsed


async def generate_playground_response(
    text: str,
    previous_messages: list[dict],
    user_settings: Optional[UserSettings],
    lead_type: str = LeadType.BUYER.value,
    now: Optional[datetime] = None,
) -> ParsedAIResponse:
    """
    Simulador: mesma montagem de prompt, sem lead real e sem banco.

    previous_messages: [{"sender": "lead"|"agent", "text": "..."}]
    """
    now = local_now(now)
    fake_lead = Lead(
        name="Test Lead",
        phone_number="",
        lead_type=lead_type,
        status=LeadStatus.IN_CONVERSATION.value,
    )
    system_prompt = build_system_prompt(fake_lead, user_settings, now)

    messages = [{"role": "system", "content": system_prompt}]
    for item in previous_messages:
        role = "user" if item.get("sender") == MessageSender.LEAD.value else "assistant"
        messages.append({"role": role, "content": item.get("text", "")})
    messages.append({"role": "user", "content": text})

    result = await chat_completion(messages)
    parsed = handle_response(result["content"])
    parsed.tokens_used = result["tokens_used"]
    return parsed
