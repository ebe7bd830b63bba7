"""Helpers dos testes (criação de usuário, lead e dados direto no banco)."""

from typing import Any, Optional

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.domain.entities import User, UserSettings
from leadnurture.infrastructure.services.auth_service import hash_password
from leadnurture.infrastructure.services.lead_service import create_lead


async def register_user(client: AsyncClient, email: str, password: str = "password123") -> dict:
    response = await client.post("/api/v1/auth/register", json={
        "name": "Jane Agent",
        "email": email,
        "password": password,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    token = body["access_token"]
    return {
        "id": body["user"]["id"],
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


async def create_lead_via_api(
    client: AsyncClient,
    headers: dict,
    phone_number: str = "(555) 123-4567",
    **extra: Any,
) -> dict:
    payload = {"name": "John Buyer", "phone_number": phone_number, **extra}
    response = await client.post("/api/v1/leads", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def make_user(db: AsyncSession, email: str = "owner@test.com", **settings_values: Any) -> User:
    """Usuário + configurações direto no banco (testes de serviço)."""
    user = User(name="Owner", email=email, password_hash=hash_password("password123"), active=True)
    db.add(user)
    await db.flush()
    db.add(UserSettings(
        user_id=user.id,
        agent_name="Jane Doe",
        company_name="Sunset Realty",
        agent_state="CA",
        **settings_values,
    ))
    await db.flush()
    return user


async def make_lead(
    db: AsyncSession,
    user: User,
    phone_number: str = "5551234567",
    name: str = "John Buyer",
    lead_type: Optional[str] = None,
    **extra: Any,
):
    data = {"name": name, "phone_number": phone_number, **extra}
    if lead_type:
        data["lead_type"] = lead_type
    return await create_lead(db, user.id, data)
