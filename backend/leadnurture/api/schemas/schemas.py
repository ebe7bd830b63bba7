"""
SCHEMAS DE VALIDAÇÃO
=====================

Define a estrutura de dados de entrada da API.
Pydantic valida automaticamente os dados; as respostas são os dicts
montados pelos `serialize_*` dos serviços.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ============================================
# AUTH
# ============================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


# ============================================
# LEAD
# ============================================

class LeadCreate(BaseModel):
    """Dados para criar lead manualmente."""

    name: str
    phone_number: str
    email: Optional[str] = None
    context: Optional[str] = None
    lead_type: str = "buyer"
    is_ai_enabled: bool = True
    enable_follow_ups: bool = True


class LeadUpdate(BaseModel):
    """Atualização parcial do lead."""

    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    context: Optional[str] = None
    lead_type: Optional[str] = None
    status: Optional[str] = None
    is_ai_enabled: Optional[bool] = None
    enable_follow_ups: Optional[bool] = None


class LeadBulkCreate(BaseModel):
    leads: list[LeadCreate] = Field(..., min_length=1, max_length=500)


class ToggleAIRequest(BaseModel):
    enabled: Optional[bool] = None  # None = inverte o valor atual


# ============================================
# MENSAGEM
# ============================================

class MessageCreate(BaseModel):
    lead_id: int
    text: str = Field(..., min_length=1, max_length=1600)
    scheduled_at: Optional[datetime] = None


class MessageUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1, max_length=1600)
    scheduled_at: Optional[datetime] = None


class PlaygroundMessage(BaseModel):
    sender: str  # "agent" | "lead"
    text: str


class PlaygroundRequest(BaseModel):
    text: str = Field(..., min_length=1)
    previous_messages: list[PlaygroundMessage] = Field(default_factory=list)
    lead_type: str = "buyer"


# ============================================
# AGENDAMENTO
# ============================================

class AppointmentCreate(BaseModel):
    lead_id: int
    title: str = Field(..., min_length=1, max_length=200)
    start_time: datetime
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None


class AppointmentUpdate(BaseModel):
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


# ============================================
# CONFIGURAÇÕES
# ============================================

class FollowUpIntervals(BaseModel):
    """Dias até o próximo follow-up, por status do lead."""

    new: Optional[int] = None
    in_conversation: Optional[int] = None
    qualified: Optional[int] = None
    appointment_set: Optional[int] = None
    converted: Optional[int] = None
    inactive: Optional[int] = None


class SettingsUpdate(BaseModel):
    agent_name: Optional[str] = None
    company_name: Optional[str] = None
    agent_city: Optional[str] = None
    agent_state: Optional[str] = None
    ai_assistant_enabled: Optional[bool] = None
    follow_up_intervals: Optional[FollowUpIntervals] = None
    buyer_prompt: Optional[str] = None
    seller_prompt: Optional[str] = None
    follow_up_prompt: Optional[str] = None


# ============================================
# BUSCA / IMÓVEIS
# ============================================

class SearchCriteriaUpsert(BaseModel):
    """Critérios manuais ou o texto "NEW SEARCH CRITERIA: ..." em `text`."""

    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    min_bathrooms: Optional[float] = None
    max_bathrooms: Optional[float] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_square_feet: Optional[int] = None
    max_square_feet: Optional[int] = None
    locations: Optional[list[str]] = None
    property_types: Optional[list[str]] = None
    notes: Optional[str] = None
    text: Optional[str] = None


class PropertyUpsert(BaseModel):
    model_config = ConfigDict(extra="ignore")

    external_id: str
    address: str
    city: str
    state: Optional[str] = None
    zip_code: Optional[str] = None
    price: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    property_type: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    status: str = "Active"


class MatchInterestUpdate(BaseModel):
    lead_interest: str
    notes: Optional[str] = None
