"""
Datos de ejemplo para el primer arranque
"""
from datetime import datetime
from typing import List

from medbox.core.clock import now_local
from medbox.schemas.alert import Alert, AlertType
from medbox.schemas.box import MedicineBox
from medbox.schemas.medicine import Medicine


def _day(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day).astimezone()


def default_boxes(user_id: str = "1") -> List[MedicineBox]:
    """Cajas de demostración"""
    now = now_local()

    return [
        MedicineBox(
            id="1",
            name="Botiquín de la cocina",
            box_id="ESP32_001_AA:BB:CC:DD:EE:FF",
            ip_address="192.168.1.101",
            user_id=user_id,
            is_connected=True,
            last_sync_at=now,
            medicines=[
                Medicine(
                    id="1",
                    name="Vitamina D",
                    times_per_day=1,
                    total_count=30,
                    current_count=5,
                    custom_message="Tomar con el desayuno",
                    schedule_time="08:00",
                    created_at=_day(2024, 1, 1),
                    updated_at=_day(2024, 1, 1)
                ),
                Medicine(
                    id="2",
                    name="Pastillas para la presión",
                    times_per_day=2,
                    total_count=60,
                    current_count=15,
                    custom_message="Tomar con agua",
                    schedule_time="08:00,20:00",
                    created_at=_day(2024, 1, 1),
                    updated_at=_day(2024, 1, 1)
                ),
            ],
            created_at=_day(2024, 1, 1),
            updated_at=_day(2024, 1, 1)
        ),
        MedicineBox(
            id="2",
            name="Botiquín del dormitorio",
            box_id="ESP32_002_FF:EE:DD:CC:BB:AA",
            ip_address="192.168.1.102",
            user_id=user_id,
            is_connected=True,
            last_sync_at=now,
            medicines=[
                Medicine(
                    id="3",
                    name="Melatonina",
                    times_per_day=1,
                    total_count=30,
                    current_count=20,
                    custom_message="Tomar 30 minutos antes de dormir",
                    schedule_time="22:00",
                    created_at=_day(2024, 1, 2),
                    updated_at=_day(2024, 1, 2)
                ),
            ],
            created_at=_day(2024, 1, 2),
            updated_at=_day(2024, 1, 2)
        ),
        MedicineBox(
            id="3",
            name="Botiquín de viaje",
            box_id="ESP32_003_11:22:33:44:55:66",
            ip_address="192.168.1.103",
            user_id=user_id,
            is_connected=False,
            medicines=[
                Medicine(
                    id="4",
                    name="Analgésico",
                    times_per_day=3,
                    total_count=24,
                    current_count=8,
                    custom_message="Tomar con comida",
                    schedule_time="08:00,14:00,20:00",
                    created_at=_day(2024, 1, 3),
                    updated_at=_day(2024, 1, 3)
                ),
            ],
            created_at=_day(2024, 1, 3),
            updated_at=_day(2024, 1, 3)
        ),
    ]


def default_alerts() -> List[Alert]:
    """Alertas de demostración"""
    return [
        Alert(
            id="1",
            medicine_id="1",
            medicine_name="Vitamina D",
            box_name="Botiquín de la cocina",
            box_id="1",
            type=AlertType.LOW_COUNT,
            message="A Vitamina D le quedan pocas pastillas (5 restantes). ¡Es momento de reponer!",
        )
    ]
