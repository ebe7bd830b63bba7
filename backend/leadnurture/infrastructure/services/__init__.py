"""
INFRASTRUCTURE SERVICES
========================

Organização:
- IA e mensagens: openai_service, twilio_service, messaging_service
- Leads: lead_service, follow_up_service, settings_service
- Agenda: appointment_service, google_calendar_service
- Imóveis: property_service
- Operacional: notification_service, auth_service, stripe_service

Os serviços se importam entre si pelo módulo (ex.: `from ... import twilio_service`),
por isso este pacote não reexporta nada.
"""
