"""
Esquemas Pydantic para Medicamentos
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
import uuid

from medbox.core.clock import now_local, ensure_aware
from medbox.schemas.schedule import parse_schedule, format_schedule, schedule_tokens, default_schedule


def new_id() -> str:
    return uuid.uuid4().hex


class Medicine(BaseModel):
    """Medicamento guardado dentro de una caja"""
    id: str = Field(default_factory=new_id)
    name: str
    times_per_day: int = Field(..., ge=1)
    total_count: int = Field(..., ge=0)
    current_count: int = Field(..., ge=0)
    custom_message: Optional[str] = None
    schedule_time: str  # ej: "08:00,14:00,20:00"
    created_at: datetime = Field(default_factory=now_local)
    updated_at: datetime = Field(default_factory=now_local)

    @field_validator('created_at', 'updated_at')
    @classmethod
    def validate_aware(cls, v):
        return ensure_aware(v)

    @property
    def schedule_tokens(self) -> List[str]:
        """Horas de toma normalizadas"""
        return schedule_tokens(self.schedule_time)

    @property
    def days_remaining(self) -> float:
        """Días de suministro restantes"""
        return self.current_count / self.times_per_day


class MedicineCreate(BaseModel):
    """Esquema para agregar medicamento a una caja"""
    name: str = Field(..., min_length=1, max_length=255, description="Nombre del medicamento")
    times_per_day: int = Field(1, ge=1, le=24, description="Tomas por día")
    total_count: int = Field(..., ge=0, description="Pastillas en el envase completo")
    current_count: Optional[int] = Field(None, ge=0, description="Pastillas restantes")
    custom_message: Optional[str] = Field(None, max_length=500, description="Recordatorio personalizado")
    schedule_time: Optional[str] = Field(None, description="Horas HH:MM separadas por comas")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('El nombre del medicamento es requerido')
        return v.strip()

    @field_validator('custom_message')
    @classmethod
    def validate_message(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @field_validator('schedule_time')
    @classmethod
    def validate_schedule(cls, v):
        if v is None or not v.strip():
            return None
        return format_schedule(parse_schedule(v))

    @model_validator(mode='after')
    def apply_defaults(self):
        # Sin contador actual se asume el envase completo
        if self.current_count is None:
            self.current_count = self.total_count
        if self.schedule_time is None:
            self.schedule_time = default_schedule(self.times_per_day)
        return self


class MedicineUpdate(BaseModel):
    """Esquema para actualizar medicamento"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    times_per_day: Optional[int] = Field(None, ge=1, le=24)
    total_count: Optional[int] = Field(None, ge=0)
    current_count: Optional[int] = Field(None, ge=0)
    custom_message: Optional[str] = Field(None, max_length=500)
    schedule_time: Optional[str] = None

    @field_validator('name', 'times_per_day', 'total_count', 'current_count', 'schedule_time')
    @classmethod
    def reject_null(cls, v):
        # Solo custom_message admite null (borra el recordatorio)
        if v is None:
            raise ValueError('El campo no puede ser nulo')
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('El nombre del medicamento es requerido')
        return v.strip() if v else v

    @field_validator('schedule_time')
    @classmethod
    def validate_schedule(cls, v):
        if v is not None:
            return format_schedule(parse_schedule(v))
        return v


class MedicineResponse(BaseModel):
    """Esquema de respuesta de medicamento"""
    id: str
    name: str
    times_per_day: int
    total_count: int
    current_count: int
    custom_message: Optional[str] = None
    schedule_time: str
    schedule: List[str] = []
    days_remaining: float = 0.0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_medicine(cls, medicine: Medicine) -> "MedicineResponse":
        return cls(
            **medicine.model_dump(),
            schedule=medicine.schedule_tokens,
            days_remaining=round(medicine.days_remaining, 2)
        )
