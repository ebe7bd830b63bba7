"""
REGRAS DE FOLLOW-UP
====================

Calcula quando o próximo follow-up automático deve sair para um lead.

Regras:
- O intervalo (em dias) depende do status do lead e vem das configurações do corretor.
- A base é a última mensagem trocada (ou a criação do lead).
- Nada é agendado para leads arquivados, descadastrados (STOP), com IA ou
  follow-up desligados, ou que já receberam o máximo de follow-ups sem responder.
"""

from datetime import datetime, timedelta
from typing import Optional

from leadnurture.domain.entities import Lead, LeadStatus, UserSettings, as_utc

DEFAULT_INTERVALS: dict[str, int] = {
    LeadStatus.NEW.value: 2,
    LeadStatus.IN_CONVERSATION.value: 3,
    LeadStatus.QUALIFIED.value: 5,
    LeadStatus.APPOINTMENT_SET.value: 1,
    LeadStatus.CONVERTED.value: 14,
    LeadStatus.INACTIVE.value: 30,
}

# Status -> coluna em UserSettings
INTERVAL_FIELDS: dict[str, str] = {
    LeadStatus.NEW.value: "follow_up_interval_new",
    LeadStatus.IN_CONVERSATION.value: "follow_up_interval_in_conversation",
    LeadStatus.QUALIFIED.value: "follow_up_interval_qualified",
    LeadStatus.APPOINTMENT_SET.value: "follow_up_interval_appointment_set",
    LeadStatus.CONVERTED.value: "follow_up_interval_converted",
    LeadStatus.INACTIVE.value: "follow_up_interval_inactive",
}


def interval_for_status(settings: Optional[UserSettings], status: str) -> int:
    """Intervalo em dias para o status (padrão quando não configurado)."""
    default = DEFAULT_INTERVALS.get(status, DEFAULT_INTERVALS[LeadStatus.NEW.value])
    if settings is None:
        return default
    field_name = INTERVAL_FIELDS.get(status)
    value = getattr(settings, field_name, None) if field_name else None
    return value if value else default


def follow_ups_allowed(lead: Lead, settings: Optional[UserSettings], max_follow_ups: int) -> bool:
    if lead.is_archived or lead.opted_out:
        return False
    if lead.enable_follow_ups is False or lead.is_ai_enabled is False:
        return False
    if settings is not None and settings.ai_assistant_enabled is False:
        return False
    return (lead.follow_up_count or 0) < max_follow_ups


def compute_next_follow_up(
    lead: Lead,
    settings: Optional[UserSettings],
    *,
    max_follow_ups: int,
    base: Optional[datetime] = None,
) -> Optional[datetime]:
    """Data do próximo follow-up, ou None quando não deve haver follow-up."""
    if not follow_ups_allowed(lead, settings, max_follow_ups):
        return None

    base = as_utc(base or lead.last_message_at or lead.created_at)
    if base is None:
        return None

    days = interval_for_status(settings, lead.status or LeadStatus.NEW.value)
    return base + timedelta(days=days)
