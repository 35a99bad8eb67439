"""
Dependencias globales de la aplicación
"""
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from typing import Optional

from medbox.core.config import get_settings
from medbox.core.database import SessionLocal
from medbox.core.security import verify_token
from medbox.core.storage import StorageAdapter
from medbox.schemas.user import UserProfile
from medbox.services.alert_engine import AlertEngine
from medbox.services.data_service import DataService
from medbox.services.device_client import DeviceClient

# Configurar OAuth2
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="api/auth/login",
    auto_error=False
)


@lru_cache()
def get_storage() -> StorageAdapter:
    """
    Adaptador de almacenamiento compartido (un único lock de escritura)
    """
    return StorageAdapter(SessionLocal, namespace=get_settings().STORAGE_NAMESPACE)


def get_alert_engine(storage: StorageAdapter = Depends(get_storage)) -> AlertEngine:
    return AlertEngine.from_settings(storage, get_settings())


def get_device_client() -> DeviceClient:
    return DeviceClient.from_settings(get_settings())


def get_data_service(
        engine: AlertEngine = Depends(get_alert_engine),
        device_client: DeviceClient = Depends(get_device_client)
) -> DataService:
    return DataService(engine.storage, engine, device_client)


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> UserProfile:
    """
    Obtener usuario actual del token JWT
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = verify_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    return UserProfile(
        id=user_id,
        email=payload.get("email", ""),
        name=payload.get("name", "")
    )
