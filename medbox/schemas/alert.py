"""
Esquemas Pydantic para Alertas
"""
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from typing import List, Optional
from datetime import date, datetime
import enum

from medbox.core.clock import now_local, ensure_aware
from medbox.schemas.medicine import new_id


class AlertType(str, enum.Enum):
    """Tipos de alerta"""
    LOW_COUNT = "low_count"
    REFILL_NEEDED = "refill_needed"
    SCHEDULE_REMINDER = "schedule_reminder"
    MEDICINE_TIME = "medicine_time"
    OUT_OF_STOCK = "out_of_stock"
    SYNC_SUCCESS = "sync_success"


class LowStockDedupPolicy(str, enum.Enum):
    """Cuándo se suprime una alerta low_count repetida"""
    UNREAD = "unread"  # mientras exista una sin leer
    ANY = "any"  # mientras exista cualquiera


class Alert(BaseModel):
    """
    Alerta de un medicamento.

    ``medicine_id``, ``medicine_name`` y ``box_name`` son una copia informativa:
    no se valida que el medicamento siga existiendo.
    """
    id: str = Field(default_factory=new_id)
    medicine_id: str
    medicine_name: str
    box_name: str
    box_id: Optional[str] = None
    type: AlertType
    message: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=now_local)

    # Clave de deduplicación de medicine_time
    schedule_token: Optional[str] = None
    dose_date: Optional[date] = None

    @field_validator('created_at')
    @classmethod
    def validate_aware(cls, v):
        return ensure_aware(v)

    def matches_dose(self, medicine_id: str, token: str, day: date) -> bool:
        return (
            self.type == AlertType.MEDICINE_TIME
            and self.medicine_id == medicine_id
            and self.schedule_token == token
            and self.dose_date == day
        )


AlertList = TypeAdapter(List[Alert])


class AlertResponse(BaseModel):
    """Esquema de respuesta de alerta"""
    id: str
    medicine_id: str
    medicine_name: str
    box_name: str
    box_id: Optional[str] = None
    type: AlertType
    message: str
    is_read: bool
    created_at: datetime
    schedule_token: Optional[str] = None
    dose_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class AlertCheckResult(BaseModel):
    """Resultado de una verificación manual de alertas"""
    created: int
    alerts: List[AlertResponse] = []

    @classmethod
    def from_alerts(cls, alerts: List[Alert]) -> "AlertCheckResult":
        return cls(
            created=len(alerts),
            alerts=[AlertResponse.model_validate(alert, from_attributes=True) for alert in alerts]
        )
