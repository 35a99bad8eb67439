# medbox/api/__init__.py
"""
Router principal de la API
"""
from fastapi import APIRouter, Depends

from medbox.core.config import get_settings
from medbox.core.dependencies import get_current_user
from medbox.schemas.user import UserProfile

# Importar todos los routers
from . import auth, boxes, medicines, alerts, dashboard

# Router principal de la API
api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

api_router.include_router(
    boxes.router,
    prefix="/boxes",
    tags=["boxes"],
    dependencies=[Depends(get_current_user)]
)

# Medicamentos anidados bajo /boxes/{box_id}/medicines
api_router.include_router(
    medicines.router,
    prefix="/boxes",
    tags=["medicines"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    alerts.router,
    prefix="/alerts",
    tags=["alerts"],
    dependencies=[Depends(get_current_user)]
)

api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_user)]
)


# Endpoints adicionales de la API
@api_router.get("/health")
async def api_health():
    """Health check específico de la API"""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION
    }


@api_router.get("/info")
async def api_info(current_user: UserProfile = Depends(get_current_user)):
    """Información de la API para el usuario actual"""
    settings = get_settings()
    return {
        "user": current_user,
        "api": {
            "version": settings.VERSION,
            "available_endpoints": [
                "/auth",
                "/boxes",
                "/boxes/{id}/medicines",
                "/alerts",
                "/dashboard"
            ]
        }
    }
