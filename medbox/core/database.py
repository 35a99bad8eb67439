"""
Configuración de base de datos con SQLAlchemy
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool
import logging

# Crear Base ANTES de importar config para evitar import circular
Base = declarative_base()

from medbox.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(database_url: str, echo: bool = False):
    """
    Crear engine de SQLAlchemy según el tipo de base de datos
    """
    if database_url.startswith("sqlite"):
        # SQLite se comparte entre los hilos del servidor y las verificaciones periódicas
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,  # Reciclar conexiones cada hora
        echo=echo,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(bind=None):
    """
    Crear todas las tablas si no existen
    """
    bind = bind or engine

    try:
        # Importar todos los modelos para que se registren
        from medbox.models import kv_entry  # noqa: F401

        Base.metadata.create_all(bind=bind)
        logger.info("✅ Tablas creadas/verificadas exitosamente")

    except Exception as e:
        logger.error(f"❌ Error al crear tablas: {e}")
        raise


def test_connection() -> bool:
    """
    Probar conexión a la base de datos
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"❌ Error de conexión a la base de datos: {e}")
        return False


def get_db_info():
    """
    Obtener información de la base de datos
    """
    return {
        "dialect": engine.dialect.name,
        "database": engine.url.database,
    }
