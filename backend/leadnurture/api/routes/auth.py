"""
ROTAS: AUTENTICAÇÃO
====================

Registro, login e informações do usuário.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from leadnurture.api.dependencies import get_current_user
from leadnurture.api.schemas import LoginRequest, RegisterRequest, TokenResponse
from leadnurture.domain.entities import User, to_iso
from leadnurture.infrastructure.database import get_db
from leadnurture.infrastructure.services.auth_service import (
    create_user_token,
    hash_password,
    verify_password,
)
from leadnurture.infrastructure.services.settings_service import get_or_create_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Autenticação"])


def user_to_response(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "google_connected": user.google_connected,
        "subscription_status": user.subscription_status,
        "subscription_current_period_end": to_iso(user.subscription_current_period_end),
        "created_at": to_iso(user.created_at),
    }


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Cria a conta do corretor (com configurações padrão) e já devolve o token."""
    email = payload.email.lower()

    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        active=True,
    )
    db.add(user)
    await db.flush()

    await get_or_create_settings(db, user.id)
    await db.commit()

    logger.info(f"👤 Novo usuário registrado: {user.id}")

    token = create_user_token(user.id)
    return {"access_token": token, "token_type": "bearer", "user": user_to_response(user)}


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Faz login e retorna token JWT."""
    result = await db.execute(select(User).where(func.lower(User.email) == payload.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning(f"🔒 Login falhou para {payload.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    token = create_user_token(user.id)
    return {"access_token": token, "token_type": "bearer", "user": user_to_response(user)}


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return user_to_response(user)
