"""
Utilidades de tiempo local
"""
from datetime import datetime
from typing import Optional


def now_local() -> datetime:
    """Instante actual con la zona horaria local"""
    return datetime.now().astimezone()


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Interpretar fechas sin zona horaria como hora local"""
    if value is None or value.tzinfo is not None:
        return value
    return value.astimezone()
