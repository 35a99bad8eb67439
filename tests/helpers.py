"""
Utilidades compartidas por las pruebas
"""
import asyncio
from datetime import datetime, timezone

import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medbox.core.database import Base
from medbox.core.storage import StorageAdapter
from medbox.models.kv_entry import KeyValueEntry  # noqa: F401
from medbox.schemas.alert import LowStockDedupPolicy
from medbox.schemas.box import MedicineBox
from medbox.schemas.medicine import Medicine
from medbox.services.alert_engine import AlertEngine
from medbox.services.data_service import DataService
from medbox.services.device_client import DeviceClient

# 10 de mayo de 2024, 08:00 UTC
NOW = datetime(2024, 5, 10, 8, 0, tzinfo=timezone.utc)


def run(coro):
    return asyncio.run(coro)


def make_storage(namespace: str = "test") -> StorageAdapter:
    """Almacenamiento sobre SQLite en memoria"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    return StorageAdapter(sessionmaker(bind=engine), namespace=namespace)


def make_engine(storage: StorageAdapter, policy=LowStockDedupPolicy.UNREAD) -> AlertEngine:
    return AlertEngine(storage, low_stock_policy=policy)


def make_medicine(**overrides) -> Medicine:
    data = {
        "name": "Ibuprofeno",
        "times_per_day": 1,
        "total_count": 30,
        "current_count": 10,
        "schedule_time": "08:00",
    }
    data.update(overrides)
    return Medicine(**data)


def make_box(medicines=None, **overrides) -> MedicineBox:
    data = {
        "name": "Caja de prueba",
        "box_id": "ESP32_TEST_00:11:22:33:44:55",
        "ip_address": "10.0.0.5",
        "user_id": "1",
        "medicines": medicines or [],
        "is_connected": True,
    }
    data.update(overrides)
    return MedicineBox(**data)


def mock_device(handler) -> DeviceClient:
    """Cliente de dispositivo con transporte simulado"""
    return DeviceClient(transport=httpx.MockTransport(handler))


def unreachable(request: httpx.Request):
    raise httpx.ConnectError("Dispositivo inalcanzable", request=request)


def make_service(storage: StorageAdapter = None, handler=unreachable, policy=LowStockDedupPolicy.UNREAD) -> DataService:
    storage = storage or make_storage()
    return DataService(storage, make_engine(storage, policy), mock_device(handler))
