"""
Configuración de la aplicación MedBox
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
import secrets


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Información del proyecto
    PROJECT_NAME: str = "MedBox API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Configuración del servidor
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Seguridad (autenticación simulada)
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    DEMO_USER_EMAIL: str = "demo@medbox.app"
    DEMO_USER_ID: str = "1"

    # Almacenamiento clave-valor
    DATABASE_URL: str = "sqlite:///./medbox.db"
    STORAGE_NAMESPACE: str = "smart_medicine"
    SEED_DEFAULT_DATA: bool = True

    # Dispositivos ESP32
    DEVICE_SCHEME: str = "http"
    DEVICE_TIMEOUT: float = 5.0
    DEVICE_SYNC_TIMEOUT: float = 10.0

    # Verificaciones periódicas (segundos)
    SCHEDULER_ENABLED: bool = True
    DOSE_CHECK_INTERVAL: int = 60
    LOW_STOCK_CHECK_INTERVAL: int = 30

    # Reglas de alertas
    LOW_COUNT_THRESHOLD: int = 3
    LOW_STOCK_DAYS: float = 3.0
    LOW_STOCK_DEDUP_POLICY: str = "unread"  # "unread" | "any"
    ALERT_RETENTION_HOURS: int = 24

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173"
    ]

    # Hosts permitidos en producción
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        """Verificar si estamos en producción"""
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Obtener configuración con cache"""
    return Settings()
