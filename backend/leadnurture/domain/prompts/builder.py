"""
Monta o prompt de sistema da IA.

PRIORIDADE:
1. Prompt customizado do corretor (buyer_prompt / seller_prompt / follow_up_prompt)
2. Prompt padrão pelo tipo do lead
Em ambos os casos as variáveis {{...}} são preenchidas e a seção com os
dados do lead é anexada ao final.
"""

import logging
from datetime import datetime
from typing import Optional

from leadnurture.domain.entities import Lead, LeadType, UserSettings
from leadnurture.domain.services.phone import format_phone_for_display
from .interpolation import interpolate, date_context
from .templates import (
    DEFAULT_BUYER_PROMPT,
    DEFAULT_SELLER_PROMPT,
    DEFAULT_FOLLOW_UP_PROMPT,
)

logger = logging.getLogger(__name__)


def select_template(
    lead_type: Optional[str],
    settings: Optional[UserSettings],
    follow_up: bool = False,
) -> str:
    if follow_up:
        custom = getattr(settings, "follow_up_prompt", None)
        return custom if custom and custom.strip() else DEFAULT_FOLLOW_UP_PROMPT

    if lead_type == LeadType.SELLER.value:
        custom = getattr(settings, "seller_prompt", None)
        return custom if custom and custom.strip() else DEFAULT_SELLER_PROMPT

    custom = getattr(settings, "buyer_prompt", None)
    return custom if custom and custom.strip() else DEFAULT_BUYER_PROMPT


def build_lead_context_section(lead: Optional[Lead]) -> str:
    if lead is None:
        return ""

    lines = [
        "# Lead Context Information",
        f"- Name: {lead.name or 'Not provided'}",
        f"- Phone: {format_phone_for_display(lead.phone_number) or 'Not provided'}",
        f"- Email: {lead.email or 'Not provided'}",
        f"- Lead Type: {lead.lead_type or 'Not specified'}",
        f"- Status: {lead.status or 'Not specified'}",
    ]
    if lead.context and lead.context.strip():
        lines.append(f"- Additional Context: {lead.context.strip()}")
    lines.append("")
    lines.append("Use this information to personalize the conversation naturally.")
    return "\n".join(lines)


def build_system_prompt(
    lead: Optional[Lead],
    settings: Optional[UserSettings],
    now: datetime,
    follow_up: bool = False,
) -> str:
    template = select_template(getattr(lead, "lead_type", None), settings, follow_up)

    context: dict[str, object] = {
        "agent_name": getattr(settings, "agent_name", None) or "Your Name",
        "company_name": getattr(settings, "company_name", None) or "Your Company",
        "agent_city": getattr(settings, "agent_city", None) or "",
        "agent_state": getattr(settings, "agent_state", None) or "",
        "lead_name": getattr(lead, "name", None) or "there",
        "lead_context": getattr(lead, "context", None) or "",
        **date_context(now),
    }

    prompt = interpolate(template, context)

    lead_section = build_lead_context_section(lead)
    if lead_section:
        prompt = f"{prompt}\n\n{lead_section}"

    logger.debug(
        "🧠 Prompt montado",
        extra={"lead_id": getattr(lead, "id", None), "follow_up": follow_up},
    )
    return prompt
