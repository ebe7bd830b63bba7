"""
Model: Appointment (Agendamento)
=================================

Representa um compromisso agendado entre corretor e lead.

Estados:
- scheduled: Agendado (criado)
- confirmed: Confirmado pelo lead
- completed: Realizado
- cancelled: Cancelado
- no_show: Lead não compareceu

Origem:
- manual: criado pelo corretor no painel
- ai: extraído da resposta da IA ("NEW APPOINTMENT SET: ...")
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, ForeignKey, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .models import Lead, User


class AppointmentStatus:
    """Estados possíveis de um agendamento."""

    SCHEDULED = "scheduled"   # Agendado (inicial)
    CONFIRMED = "confirmed"   # Confirmado pelo lead
    COMPLETED = "completed"   # Realizado
    CANCELLED = "cancelled"   # Cancelado
    NO_SHOW = "no_show"       # Lead não compareceu

    ALL = (SCHEDULED, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)


class AppointmentSource:
    MANUAL = "manual"
    AI = "ai"


class Appointment(Base, TimestampMixin):
    """Agendamento entre corretor e lead, opcionalmente sincronizado com o Google Calendar."""

    __tablename__ = "appointments"

    # ==========================================
    # IDENTIFICAÇÃO
    # ==========================================
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id", ondelete="CASCADE"),
        index=True,
        nullable=False
    )

    # ==========================================
    # DADOS DO AGENDAMENTO
    # ==========================================
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
        index=True
    )
    source: Mapped[str] = mapped_column(String(20), default=AppointmentSource.MANUAL)

    # ==========================================
    # GOOGLE CALENDAR
    # ==========================================
    google_event_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    google_event_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    google_event_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    lead: Mapped["Lead"] = relationship()
    user: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return f"<Appointment {self.id}: {self.title} @ {self.start_time}>"
