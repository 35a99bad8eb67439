"""
Esquemas para la comunicación con el ESP32
"""
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime


class DeviceResult(BaseModel):
    """Resultado normalizado de una llamada al dispositivo"""
    success: bool
    message: str
    data: Optional[Any] = None


class SyncMedicine(BaseModel):
    id: str
    name: str
    times: List[str]
    message: str


class SyncPayload(BaseModel):
    """Cuerpo de POST /sync (nombres de campo del firmware)"""
    box_id: str = Field(..., serialization_alias="boxId")
    medicines: List[SyncMedicine] = []


class SyncResult(BaseModel):
    """Resultado de sincronizar una caja"""
    box_id: str
    status: str  # "success" | "failed"
    message: str
    synced_at: datetime


class ConnectionResult(BaseModel):
    """Resultado de conectar/desconectar una caja"""
    box_id: str
    success: bool
    message: str
    is_connected: bool
