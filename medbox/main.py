"""
Archivo principal de la aplicación FastAPI - MedBox
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from medbox.core.clock import now_local
from medbox.core.config import get_settings
from medbox.core.database import create_tables, test_connection, get_db_info
from medbox.core.dependencies import get_storage
from medbox.core.exceptions import NotFoundError
from medbox.api import api_router
from medbox.services.alert_engine import AlertEngine
from medbox.services.alert_scheduler import AlertScheduler
from medbox.services.data_service import DataService
from medbox.services.device_client import DeviceClient
import logging

settings = get_settings()

# Configurar logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestión del ciclo de vida de la aplicación"""
    # Startup
    logger.info("🚀 Iniciando MedBox API...")
    logger.info(f"🌍 Ambiente: {settings.ENVIRONMENT}")

    create_tables()

    storage = get_storage()
    engine = AlertEngine.from_settings(storage, settings)
    service = DataService(storage, engine, DeviceClient.from_settings(settings))
    if service.initialize(seed=settings.SEED_DEFAULT_DATA, user_id=settings.DEMO_USER_ID):
        logger.info("✅ Almacenamiento inicializado con datos de ejemplo")

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = AlertScheduler(
            engine,
            dose_interval=settings.DOSE_CHECK_INTERVAL,
            low_stock_interval=settings.LOW_STOCK_CHECK_INTERVAL
        )
        scheduler.start()

    logger.info("🎯 MedBox API lista para recibir requests")
    yield

    # Shutdown
    if scheduler:
        await scheduler.stop()
    logger.info("🛑 Cerrando MedBox API...")


def create_application() -> FastAPI:
    """Factory function para crear la aplicación FastAPI"""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
## MedBox API

API para gestionar cajas de medicamentos ESP32.

### Características principales:
- 📦 Cajas emparejadas con dispositivos ESP32
- 💊 Medicamentos con horarios de toma
- 🔔 Alertas de dosis y existencias bajas
- 🔄 Sincronización de horarios con el dispositivo
        """,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    setup_middlewares(app)
    setup_exception_handlers(app)
    setup_routes(app)

    return app


def setup_middlewares(app: FastAPI):
    """Configurar middlewares de la aplicación"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info(f"🌐 Orígenes permitidos: {settings.CORS_ORIGINS}")

    if settings.is_production:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)
        logger.info("🛡️ TrustedHost middleware configurado")


def setup_exception_handlers(app: FastAPI):
    """Traducir errores del dominio a respuestas HTTP"""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc)}
        )


def setup_routes(app: FastAPI):
    """Configurar rutas de la aplicación"""

    @app.get("/")
    async def root():
        return {
            "message": "💊 MedBox API",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "documentation": "/docs",
            "health": "/health",
            "api": "/api"
        }

    @app.get("/health")
    async def health_check():
        """Health check completo de la aplicación"""
        db_status = "connected" if test_connection() else "disconnected"

        health_status = {
            "status": "healthy" if db_status == "connected" else "degraded",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "database": {
                "status": db_status
            },
            "timestamp": now_local().isoformat()
        }

        # Información adicional en desarrollo
        if settings.DEBUG:
            health_status["database"].update(get_db_info())

        return health_status

    app.include_router(
        api_router,
        prefix="/api"
    )


# Crear la aplicación
app = create_application()


# Solo para desarrollo con uvicorn run
if __name__ == "__main__":
    import uvicorn

    logger.info(f"🌐 URL: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"📚 Docs: http://{settings.HOST}:{settings.PORT}/docs")

    uvicorn.run(
        "medbox.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
