"""
Autenticación simulada con tokens JWT

No hay contraseñas ni base de usuarios: cualquier email inicia sesión y su
identificador se deriva del propio email.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from jose import JWTError, jwt
from fastapi import HTTPException, status

from medbox.core.config import get_settings


def user_id_for_email(email: str) -> str:
    """
    Identificador estable del usuario simulado
    """
    settings = get_settings()
    email = email.strip().lower()
    if email == settings.DEMO_USER_EMAIL.lower():
        return settings.DEMO_USER_ID
    return uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}").hex


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crear token JWT
    """
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verificar y decodificar token JWT
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido",
            headers={"WWW-Authenticate": "Bearer"},
        )
