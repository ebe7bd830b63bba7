"""
SERVIÇO DE AUTENTICAÇÃO
========================

Senhas com SHA256 + salt e tokens JWT do corretor.

O mesmo JWT serve para sessão e para usos pontuais (state do OAuth do
Google): tokens de uso pontual levam "purpose" e nunca autenticam rotas.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import secrets
from jose import JWTError, jwt

from leadnurture.config import get_settings

settings = get_settings()

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    pwd_hash = hashlib.sha256((password + salt).encode()).hexdigest()
    return f"{salt}${pwd_hash}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        salt, pwd_hash = hashed_password.split("$")
    except ValueError:
        return False
    candidate = hashlib.sha256((plain_password + salt).encode()).hexdigest()
    return secrets.compare_digest(candidate, pwd_hash)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def create_user_token(
    user_id: int,
    purpose: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    data = {"sub": str(user_id)}
    if purpose:
        data["purpose"] = purpose
    return create_access_token(data, expires_delta)


def user_id_from_token(token: str, purpose: Optional[str] = None) -> Optional[int]:
    """
    ID do corretor dono do token, ou None.

    O "purpose" do token precisa ser exatamente o pedido: token de sessão
    (sem purpose) não vale como state do OAuth e vice-versa.
    """
    payload = decode_access_token(token or "")
    if not payload or payload.get("purpose") != purpose:
        return None

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        return None
    return int(user_id)
