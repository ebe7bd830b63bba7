"""Entidades do domínio."""
from .base import Base, TimestampMixin, json_type, as_utc, to_iso, utcnow
from .enums import (
    LeadStatus,
    LeadType,
    MessageSender,
    MessageDirection,
    DeliveryStatus,
    NotificationType,
    SubscriptionStatus,
    LeadInterest,
)
from .models import (
    User,
    UserSettings,
    Lead,
    Message,
    Notification,
    direction_for_sender,
)
from .appointment import Appointment, AppointmentStatus, AppointmentSource
from .property import Property, LeadPropertySearch, PropertyMatch

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "json_type",
    "as_utc",
    "to_iso",
    "utcnow",
    # Enums
    "LeadStatus",
    "LeadType",
    "MessageSender",
    "MessageDirection",
    "DeliveryStatus",
    "NotificationType",
    "SubscriptionStatus",
    "LeadInterest",
    # Models
    "User",
    "UserSettings",
    "Lead",
    "Message",
    "Notification",
    "direction_for_sender",
    "Appointment",
    "AppointmentStatus",
    "AppointmentSource",
    "Property",
    "LeadPropertySearch",
    "PropertyMatch",
]
