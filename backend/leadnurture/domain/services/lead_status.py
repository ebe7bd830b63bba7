"""Transições de status do lead e palavras-chave de opt-out."""

from datetime import datetime, timedelta
from typing import Optional

from leadnurture.domain.entities import Lead, LeadStatus, AppointmentStatus, as_utc

OPT_OUT_KEYWORDS = {"STOP", "STOPALL", "UNSUBSCRIBE", "CANCEL", "END", "QUIT"}
OPT_IN_KEYWORDS = {"START", "UNSTOP", "YES"}

# Status que não são rebaixados para Inactive
PROTECTED_FROM_INACTIVE = {
    LeadStatus.INACTIVE.value,
    LeadStatus.CONVERTED.value,
    LeadStatus.APPOINTMENT_SET.value,
}


def _keyword(text: Optional[str]) -> str:
    return (text or "").strip().strip(".!").upper()


def is_opt_out(text: Optional[str]) -> bool:
    return _keyword(text) in OPT_OUT_KEYWORDS


def is_opt_in(text: Optional[str]) -> bool:
    return _keyword(text) in OPT_IN_KEYWORDS


def status_after_inbound(current: str) -> str:
    """Lead novo ou inativo que responde passa a estar em conversa."""
    if current in (LeadStatus.NEW.value, LeadStatus.INACTIVE.value):
        return LeadStatus.IN_CONVERSATION.value
    return current


def status_for_appointment(current: str, appointment_status: str) -> str:
    if appointment_status in (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED):
        return LeadStatus.APPOINTMENT_SET.value
    if appointment_status == AppointmentStatus.COMPLETED:
        return LeadStatus.CONVERTED.value
    return current


def should_mark_inactive(lead: Lead, now: datetime, inactive_after_days: int) -> bool:
    if lead.is_archived or lead.status in PROTECTED_FROM_INACTIVE:
        return False
    last = as_utc(lead.last_message_at)
    if last is None:
        return False
    return last < now - timedelta(days=inactive_after_days)


def apply_status(lead: Lead, new_status: str) -> bool:
    """Aplica o status; retorna True se mudou."""
    if new_status not in {status.value for status in LeadStatus}:
        raise ValueError(f"Invalid lead status: {new_status}")
    if lead.status == new_status:
        return False
    lead.status = new_status
    return True
