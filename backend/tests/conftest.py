"""
Fixtures compartilhadas dos testes.

As variáveis de ambiente precisam existir antes do primeiro import do
pacote: `leadnurture.config` e o engine do banco são criados no import.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_leadnurture.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("TWILIO_VALIDATE_SIGNATURE", "false")

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.main import app
from leadnurture.domain.entities import Base
from leadnurture.infrastructure.database import async_session, engine
from leadnurture.infrastructure.services import openai_service, twilio_service
from leadnurture.infrastructure.services.twilio_service import SentMessage
from tests.utils import register_user


@pytest.fixture(autouse=True)
async def setup_database():
    """Banco limpo a cada teste."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def auth_user(async_client: AsyncClient) -> dict:
    """Corretor registrado: {"id", "token", "headers"}."""
    return await register_user(async_client, "agent@test.com")


@pytest.fixture
def auth_headers(auth_user: dict) -> dict:
    return auth_user["headers"]


@pytest.fixture
def sms_mock(monkeypatch) -> AsyncMock:
    """Twilio falso: cada envio devolve um SID novo (SM1, SM2, ...)."""
    counter = {"n": 0}

    async def fake_send(to: str, body: str) -> SentMessage:
        counter["n"] += 1
        return SentMessage(sid=f"SM{counter['n']}", status="queued")

    mock = AsyncMock(side_effect=fake_send)
    monkeypatch.setattr(twilio_service, "send_sms", mock)
    return mock


@pytest.fixture
def ai_reply(monkeypatch):
    """
    Define o texto que a "OpenAI" devolve.

    Uso:
        mock = ai_reply("Hi! NEW APPOINTMENT SET: 06/15/2030 at 2:30 PM")
    """

    def _set(content: str, tokens_used: int = 42) -> AsyncMock:
        mock = AsyncMock(return_value={"content": content, "tokens_used": tokens_used})
        monkeypatch.setattr(openai_service, "chat_completion", mock)
        return mock

    return _set
