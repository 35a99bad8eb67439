#!/usr/bin/env python3
"""
Script para crear la tabla de almacenamiento y cargar los datos de ejemplo
"""
import sys
import os

# Agregar el directorio raíz al path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from medbox.core.config import get_settings
from medbox.core.database import create_tables, test_connection, get_db_info
from medbox.core.dependencies import get_storage
from medbox.services.alert_engine import AlertEngine
from medbox.services.data_service import DataService
from medbox.services.device_client import DeviceClient
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Función principal"""
    settings = get_settings()

    logger.info("🚀 Inicializando almacenamiento de MedBox")
    logger.info(f"📊 Entorno: {settings.ENVIRONMENT}")

    logger.info("🔗 Probando conexión...")
    if not test_connection():
        logger.error("❌ No se pudo conectar a la base de datos")
        return False

    db_info = get_db_info()
    logger.info(f"✅ Conectado ({db_info['dialect']}: {db_info['database']})")

    try:
        create_tables()
    except Exception as e:
        logger.error(f"❌ Error al crear tablas: {e}")
        return False

    storage = get_storage()
    service = DataService(
        storage,
        AlertEngine.from_settings(storage, settings),
        DeviceClient.from_settings(settings)
    )

    if service.initialize(seed=settings.SEED_DEFAULT_DATA, user_id=settings.DEMO_USER_ID):
        logger.info("📦 Datos de ejemplo cargados")
    else:
        logger.info("ℹ️ El almacenamiento ya estaba inicializado")

    boxes = service.get_boxes(settings.DEMO_USER_ID)
    logger.info(f"📋 Cajas del usuario demo: {len(boxes)}")
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
