"""Base e mixins para todos os modelos do banco."""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def json_type():
    """JSONB no Postgres, JSON genérico no SQLite (testes).

    Uma instância nova por coluna: MutableDict/MutableList se prendem à
    instância do tipo, então dict e list não podem compartilhar a mesma.
    """
    return JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normaliza para UTC. SQLite devolve datetimes sem tzinfo: assume UTC nesses casos."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Classe base para todos os modelos."""
    pass


class TimestampMixin:
    """Adiciona created_at e updated_at automáticos."""

    # default no Python: o valor fica no objeto após o flush (sem refresh async)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 em UTC para as respostas da API."""
    value = as_utc(value)
    return value.isoformat() if value else None
