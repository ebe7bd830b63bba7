"""Prompts da IA (comprador, vendedor, follow-up)."""
from .templates import (
    DEFAULT_BUYER_PROMPT,
    DEFAULT_SELLER_PROMPT,
    DEFAULT_FOLLOW_UP_PROMPT,
    SUPPORTED_VARIABLES,
)
from .interpolation import interpolate, date_context, find_variables
from .builder import build_system_prompt, build_lead_context_section, select_template

__all__ = [
    "DEFAULT_BUYER_PROMPT",
    "DEFAULT_SELLER_PROMPT",
    "DEFAULT_FOLLOW_UP_PROMPT",
    "SUPPORTED_VARIABLES",
    "interpolate",
    "date_context",
    "find_variables",
    "build_system_prompt",
    "build_lead_context_section",
    "select_template",
]
