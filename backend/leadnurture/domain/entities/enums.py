"""Enums - valores fixos que se repetem no sistema."""

from enum import Enum


class LeadStatus(str, Enum):
    """Status do lead no funil."""
    NEW = "New"                          # Acabou de entrar
    IN_CONVERSATION = "In Conversation"  # Respondeu pelo menos uma vez
    QUALIFIED = "Qualified"              # Marcado como qualificado pelo corretor
    APPOINTMENT_SET = "Appointment Set"  # Tem visita/reunião agendada
    CONVERTED = "Converted"              # Virou cliente
    INACTIVE = "Inactive"                # Sem conversa há dias


class LeadType(str, Enum):
    """Tipo do lead (define o prompt da IA)."""
    BUYER = "buyer"
    SELLER = "seller"


class MessageSender(str, Enum):
    AGENT = "agent"
    LEAD = "lead"


class MessageDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"


class DeliveryStatus(str, Enum):
    """Status de entrega (espelha os status do Twilio + estados internos)."""
    QUEUED = "queued"            # Criada, aguardando envio (ou agendada)
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    UNDELIVERED = "undelivered"
    READ = "read"
    RECEIVED = "received"        # Mensagem recebida do lead
    CANCELED = "canceled"        # Follow-up cancelado antes do envio


class NotificationType(str, Enum):
    MESSAGE = "message"
    APPOINTMENT = "appointment"
    SEARCH_CRITERIA = "search_criteria"
    DELIVERY_FAILED = "delivery_failed"


class SubscriptionStatus(str, Enum):
    """Status da assinatura Stripe."""
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    UNPAID = "unpaid"


class LeadInterest(str, Enum):
    UNKNOWN = "unknown"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
