"""
Utilitários de telefone (padrão norte-americano).

Internamente o telefone do lead é guardado só com dígitos e DDI
("15551234567"); para o Twilio usamos E.164 ("+15551234567").
"""

import re
from typing import Optional


def digits_only(raw: Optional[str]) -> str:
    return re.sub(r"\D", "", raw or "")


def normalize_phone(raw: Optional[str]) -> str:
    """10 dígitos recebem o DDI 1; 11+ dígitos são mantidos."""
    digits = digits_only(raw)
    if len(digits) == 10:
        return f"1{digits}"
    return digits


def to_e164(raw: Optional[str]) -> str:
    normalized = normalize_phone(raw)
    if len(normalized) >= 10:
        return f"+{normalized}"
    return raw or ""


def validate_phone(raw: Optional[str]) -> tuple[bool, str, Optional[str]]:
    """
    Valida o telefone.

    Returns:
        (válido, telefone normalizado, mensagem de erro)
    """
    digits = digits_only(raw)
    if not digits:
        return False, "", "Phone number is required"
    if len(digits) < 7:
        return False, digits, "Phone number is too short"
    if len(digits) == 7:
        return False, digits, "Please include area code"
    if len(digits) > 15:
        return False, digits, "Phone number is too long"
    return True, normalize_phone(digits), None


def format_phone_for_display(raw: Optional[str]) -> str:
    digits = digits_only(raw)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return raw or ""
