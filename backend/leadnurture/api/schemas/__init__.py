"""Schemas da API."""
from .schemas import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    LeadCreate,
    LeadUpdate,
    LeadBulkCreate,
    ToggleAIRequest,
    MessageCreate,
    MessageUpdate,
    PlaygroundMessage,
    PlaygroundRequest,
    AppointmentCreate,
    AppointmentUpdate,
    FollowUpIntervals,
    SettingsUpdate,
    SearchCriteriaUpsert,
    PropertyUpsert,
    MatchInterestUpdate,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "TokenResponse",
    "LeadCreate",
    "LeadUpdate",
    "LeadBulkCreate",
    "ToggleAIRequest",
    "MessageCreate",
    "MessageUpdate",
    "PlaygroundMessage",
    "PlaygroundRequest",
    "AppointmentCreate",
    "AppointmentUpdate",
    "FollowUpIntervals",
    "SettingsUpdate",
    "SearchCriteriaUpsert",
    "PropertyUpsert",
    "MatchInterestUpdate",
]
