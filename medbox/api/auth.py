"""
Endpoints de autenticación simulada
"""
from datetime import timedelta

from fastapi import APIRouter, Depends

from medbox.core.config import get_settings
from medbox.core.dependencies import get_current_user
from medbox.core.security import create_access_token, user_id_for_email
from medbox.schemas.user import LoginRequest, LoginResponse, UserProfile

router = APIRouter()


# =========================
# LOGIN
# =========================
@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest):
    """
    Login simulado: cualquier email es válido
    """
    settings = get_settings()
    email = credentials.email.lower()
    user = UserProfile(
        id=user_id_for_email(email),
        email=email,
        name=credentials.name or email.split("@")[0]
    )

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        {"sub": user.id, "email": user.email, "name": user.name},
        expires_delta=expires
    )

    return LoginResponse(
        access_token=token,
        expires_in=int(expires.total_seconds()),
        user=user
    )


# =========================
# ME
# =========================
@router.get("/me", response_model=UserProfile)
async def me(current_user: UserProfile = Depends(get_current_user)):
    """
    Usuario actual
    """
    return current_user
