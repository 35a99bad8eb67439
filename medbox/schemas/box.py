"""
Esquemas Pydantic para Cajas de Medicamentos
"""
from pydantic import BaseModel, Field, TypeAdapter, field_validator
from typing import List, Optional
from datetime import datetime

from medbox.core.clock import now_local, ensure_aware
from medbox.schemas.medicine import Medicine, MedicineResponse, new_id


class MedicineBox(BaseModel):
    """Caja ESP32 emparejada y sus medicamentos"""
    id: str = Field(default_factory=new_id)
    name: str
    box_id: str  # Identificador del ESP32 (MAC/BLE)
    ip_address: str
    user_id: str
    medicines: List[Medicine] = []
    is_connected: bool = False
    last_sync_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_local)
    updated_at: datetime = Field(default_factory=now_local)

    @field_validator('created_at', 'updated_at', 'last_sync_at')
    @classmethod
    def validate_aware(cls, v):
        return ensure_aware(v)

    @property
    def medicine_ids(self) -> set:
        return {m.id for m in self.medicines}

    def find_medicine(self, medicine_id: str) -> Optional[Medicine]:
        for medicine in self.medicines:
            if medicine.id == medicine_id:
                return medicine
        return None


BoxList = TypeAdapter(List[MedicineBox])


class BoxCreate(BaseModel):
    """Esquema para emparejar una caja nueva"""
    name: str = Field(..., min_length=1, max_length=255, description="Nombre de la caja")
    box_id: str = Field(..., min_length=1, max_length=255, description="Identificador del dispositivo")
    ip_address: str = Field(..., min_length=1, max_length=255, description="IP del ESP32")
    is_connected: bool = True

    @field_validator('name', 'box_id', 'ip_address')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError('El campo es requerido')
        return v.strip()


class BoxUpdate(BaseModel):
    """Esquema para actualizar caja"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    box_id: Optional[str] = Field(None, min_length=1, max_length=255)
    ip_address: Optional[str] = Field(None, min_length=1, max_length=255)
    is_connected: Optional[bool] = None
    last_sync_at: Optional[datetime] = None

    @field_validator('name', 'box_id', 'ip_address', 'is_connected')
    @classmethod
    def reject_null(cls, v):
        # Omitir el campo para no cambiarlo; null no es un valor válido
        if v is None:
            raise ValueError('El campo no puede ser nulo')
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('El campo es requerido')
        return v


class BoxResponse(BaseModel):
    """Esquema de respuesta de caja"""
    id: str
    name: str
    box_id: str
    ip_address: str
    user_id: str
    medicines: List[MedicineResponse] = []
    is_connected: bool
    last_sync_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_box(cls, box: MedicineBox) -> "BoxResponse":
        data = box.model_dump(exclude={"medicines"})
        return cls(
            **data,
            medicines=[MedicineResponse.from_medicine(m) for m in box.medicines]
        )
