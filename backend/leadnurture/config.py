"""Configurações da aplicação - carrega variáveis do .env"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",  # carrega local
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # ===========================================
    # CORE
    # ===========================================
    environment: str = "development"
    database_url: str
    secret_key: str
    access_token_expire_minutes: int = 1440
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # URLs públicas (callbacks do Twilio, redirect do Stripe)
    backend_url: Optional[str] = None
    frontend_url: str = "http://localhost:3000"

    # ===========================================
    # OPENAI
    # ===========================================
    openai_api_key: str
    openai_model: str = "gpt-4.1-mini"
    openai_temperature: float = 1.0
    openai_max_tokens: int = 1000
    openai_frequency_penalty: float = 0.81
    openai_presence_penalty: float = 0.85

    # ===========================================
    # TWILIO (SMS)
    # ===========================================
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None  # Número de envio em E.164
    twilio_validate_signature: bool = True

    # ===========================================
    # GOOGLE CALENDAR (OAuth)
    # ===========================================
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: Optional[str] = None

    # ===========================================
    # STRIPE
    # ===========================================
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_price_id: Optional[str] = None

    # ===========================================
    # JOBS / REGRAS DE NEGÓCIO
    # ===========================================
    scheduler_enabled: bool = True
    timezone: str = "America/Los_Angeles"  # horário local dos corretores (agendamentos, jobs)
    inactive_after_days: int = 7
    max_follow_ups: int = 3
    default_appointment_minutes: int = 60

    # ===========================================
    # PROPRIEDADES
    # ===========================================
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def twilio_configured(self) -> bool:
        """Verifica se Twilio está configurado."""
        return bool(
            self.twilio_account_sid and
            self.twilio_auth_token and
            self.twilio_phone_number
        )

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_redirect_uri)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key and self.stripe_price_id)

    @property
    def status_callback_url(self) -> Optional[str]:
        """URL que o Twilio chama a cada mudança de status de entrega."""
        if not self.backend_url:
            return None
        return f"{self.backend_url.rstrip('/')}/api/v1/messages/status-callback"


@lru_cache
def get_settings() -> Settings:
    return Settings()
