"""Registro, login e validação do token."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from leadnurture.infrastructure.services.auth_service import (
    create_access_token,
    create_user_token,
    hash_password,
    user_id_from_token,
    verify_password,
)
from tests.utils import register_user


@pytest.mark.asyncio
async def test_register_returns_token_and_default_settings(async_client: AsyncClient):
    user = await register_user(async_client, "Jane@Example.com")

    me = await async_client.get("/api/v1/auth/me", headers=user["headers"])
    assert me.status_code == 200
    assert me.json()["email"] == "jane@example.com"
    assert me.json()["subscription_status"] == "trialing"

    settings = await async_client.get("/api/v1/settings", headers=user["headers"])
    assert settings.json()["follow_up_intervals"]["new"] == 2


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(async_client: AsyncClient):
    await register_user(async_client, "jane@example.com")

    response = await async_client.post("/api/v1/auth/register", json={
        "name": "Other",
        "email": "JANE@example.com",
        "password": "password123",
    })

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_short_password_is_rejected(async_client: AsyncClient):
    response = await async_client.post("/api/v1/auth/register", json={
        "name": "Jane",
        "email": "jane@example.com",
        "password": "short",
    })

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login(async_client: AsyncClient):
    await register_user(async_client, "jane@example.com", password="correct-horse")

    ok = await async_client.post("/api/v1/auth/login", json={
        "email": "jane@example.com",
        "password": "correct-horse",
    })
    wrong = await async_client.post("/api/v1/auth/login", json={
        "email": "jane@example.com",
        "password": "wrong-password",
    })

    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_valid_token(async_client: AsyncClient, auth_user):
    missing = await async_client.get("/api/v1/leads")
    garbage = await async_client.get("/api/v1/leads", headers={"Authorization": "Bearer not-a-jwt"})

    assert missing.status_code in (401, 403)
    assert garbage.status_code == 401


@pytest.mark.asyncio
async def test_oauth_state_token_cannot_authenticate(async_client: AsyncClient, auth_user):
    state = create_access_token(
        {"sub": str(auth_user["id"]), "purpose": "google_oauth"},
        expires_delta=timedelta(minutes=10),
    )

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {state}"})

    assert response.status_code == 401


def test_password_hash_round_trip():
    stored = hash_password("s3cret-pass")

    assert verify_password("s3cret-pass", stored)
    assert not verify_password("wrong", stored)
    assert not verify_password("s3cret-pass", "no-salt-separator")


def test_token_purpose_must_match():
    session = create_user_token(7)
    state = create_user_token(7, purpose="google_oauth")

    assert user_id_from_token(session) == 7
    assert user_id_from_token(state) is None
    assert user_id_from_token(state, purpose="google_oauth") == 7
    assert user_id_from_token(session, purpose="google_oauth") is None
    assert user_id_from_token(create_access_token({"sub": "abc"})) is None
    assert user_id_from_token("not-a-jwt") is None
