"""
Esquemas Pydantic para Usuario y Autenticación simulada
"""
from pydantic import BaseModel, EmailStr
from typing import Optional


class LoginRequest(BaseModel):
    """Credenciales de login (no se verifican)"""
    email: EmailStr
    password: Optional[str] = None
    name: Optional[str] = None


class UserProfile(BaseModel):
    """Usuario actual"""
    id: str
    email: str
    name: str


class LoginResponse(BaseModel):
    """Respuesta de login"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserProfile
