"""
Modelos principais do banco de dados.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    String,
    Integer,
    Boolean,
    ForeignKey,
    Text,
    DateTime,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.mutable import MutableDict

from .base import Base, TimestampMixin, json_type
from .enums import (
    LeadStatus,
    LeadType,
    MessageSender,
    MessageDirection,
    DeliveryStatus,
    SubscriptionStatus,
)


class User(Base, TimestampMixin):
    """Corretor (agente) que usa a plataforma."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    password_hash: Mapped[str] = mapped_column(String(255))
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    # ==========================================
    # GOOGLE CALENDAR (OAuth)
    # ==========================================
    google_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    google_refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    google_token_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    google_calendar_id: Mapped[Optional[str]] = mapped_column(String(255), default="primary")

    # ==========================================
    # BILLING (Stripe)
    # ==========================================
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    subscription_status: Mapped[str] = mapped_column(String(30), default=SubscriptionStatus.TRIALING.value)
    subscription_plan: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    subscription_current_period_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    settings: Mapped[Optional["UserSettings"]] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    leads: Mapped[list["Lead"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    @property
    def google_connected(self) -> bool:
        return bool(self.google_refresh_token or self.google_access_token)


class UserSettings(Base, TimestampMixin):
    """
    Configurações do corretor: identidade usada nos prompts, intervalos de
    follow-up (em dias, por status do lead) e prompts customizados.
    """

    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )

    # ==========================================
    # IDENTIDADE DO AGENTE
    # ==========================================
    agent_name: Mapped[str] = mapped_column(String(200), default="Your Name")
    company_name: Mapped[str] = mapped_column(String(200), default="Your Company")
    agent_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    agent_state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ai_assistant_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    # ==========================================
    # INTERVALOS DE FOLLOW-UP (dias)
    # ==========================================
    follow_up_interval_new: Mapped[int] = mapped_column(Integer, default=2)
    follow_up_interval_in_conversation: Mapped[int] = mapped_column(Integer, default=3)
    follow_up_interval_qualified: Mapped[int] = mapped_column(Integer, default=5)
    follow_up_interval_appointment_set: Mapped[int] = mapped_column(Integer, default=1)
    follow_up_interval_converted: Mapped[int] = mapped_column(Integer, default=14)
    follow_up_interval_inactive: Mapped[int] = mapped_column(Integer, default=30)

    # ==========================================
    # PROMPTS CUSTOMIZADOS (None = usa o padrão)
    # ==========================================
    buyer_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    seller_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    follow_up_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="settings")


class Lead(Base, TimestampMixin):
    """Lead (comprador ou vendedor de imóvel) acompanhado pelo corretor."""

    __tablename__ = "leads"
    __table_args__ = (
        UniqueConstraint("user_id", "phone_number", name="uq_leads_user_phone"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    # ==========================================
    # DADOS DO LEAD
    # ==========================================
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str] = mapped_column(String(20), index=True)  # só dígitos, com DDI
    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ==========================================
    # STATUS
    # ==========================================
    status: Mapped[str] = mapped_column(String(30), default=LeadStatus.NEW.value, index=True)
    lead_type: Mapped[str] = mapped_column(String(20), default=LeadType.BUYER.value)

    # ==========================================
    # AUTOMAÇÃO
    # ==========================================
    is_ai_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    enable_follow_ups: Mapped[bool] = mapped_column(Boolean, default=True)
    follow_up_count: Mapped[int] = mapped_column(Integer, default=0)
    opted_out: Mapped[bool] = mapped_column(Boolean, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    last_message_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_inbound_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ==========================================
    # PONTUAÇÃO (None até a primeira resposta do lead)
    # ==========================================
    interest_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sentiment_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    last_score_update: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship(back_populates="leads")
    messages: Mapped[list["Message"]] = relationship(
        back_populates="lead", cascade="all, delete-orphan", order_by="Message.created_at"
    )


def direction_for_sender(sender: str) -> str:
    """agent -> outbound, lead -> inbound."""
    if sender == MessageSender.AGENT.value:
        return MessageDirection.OUTBOUND.value
    if sender == MessageSender.LEAD.value:
        return MessageDirection.INBOUND.value
    raise ValueError(f"Invalid sender: {sender}")


class Message(Base, TimestampMixin):
    """Mensagem SMS trocada com o lead (enviada, recebida ou agendada)."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(ForeignKey("leads.id", ondelete="CASCADE"), index=True)

    text: Mapped[str] = mapped_column(Text, default="")
    sender: Mapped[str] = mapped_column(String(10))
    direction: Mapped[str] = mapped_column(String(10))
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    is_follow_up: Mapped[bool] = mapped_column(Boolean, default=False)

    # ==========================================
    # ENTREGA (Twilio)
    # ==========================================
    twilio_sid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True, index=True)
    delivery_status: Mapped[str] = mapped_column(
        String(20), default=DeliveryStatus.QUEUED.value, index=True
    )
    error_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    # "metadata" é reservado no SQLAlchemy
    meta: Mapped[dict] = mapped_column(
        "metadata", MutableDict.as_mutable(json_type()), default=dict
    )

    lead: Mapped["Lead"] = relationship(back_populates="messages")

    def __init__(self, **kwargs):
        sender = kwargs.get("sender")
        if sender is None:
            raise ValueError("Message sender is required")
        expected = direction_for_sender(sender)
        direction = kwargs.setdefault("direction", expected)
        if direction != expected:
            raise ValueError(
                f"Message direction '{direction}' does not match sender '{sender}'"
            )
        super().__init__(**kwargs)


class Notification(Base, TimestampMixin):
    """Notificação exibida no painel do corretor."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    lead_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("leads.id", ondelete="CASCADE"), nullable=True, index=True
    )

    type: Mapped[str] = mapped_column(String(30))
    title: Mapped[str] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    meta: Mapped[dict] = mapped_column(
        "metadata", MutableDict.as_mutable(json_type()), default=dict
    )
