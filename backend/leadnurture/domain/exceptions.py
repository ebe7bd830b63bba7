"""Exceções de domínio (convertidas em JSON pelo handler registrado em main.py)."""

from typing import Optional


class NurtureError(Exception):
    """Erro base com status HTTP associado."""

    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class LeadNotFoundError(NurtureError):
    status_code = 404

    def __init__(self, lead_id: int):
        super().__init__(f"Lead {lead_id} not found")
        self.lead_id = lead_id


class MessageDeliveryError(NurtureError):
    """Falha ao enviar SMS. `code` segue o código de erro do Twilio quando houver."""

    status_code = 502

    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message)
        self.code = code


class CalendarSyncError(NurtureError):
    status_code = 502


class BillingError(NurtureError):
    status_code = 400
