"""
Endpoints del panel principal
"""
from fastapi import APIRouter, Depends

from medbox.core.dependencies import get_current_user, get_data_service
from medbox.schemas.user import UserProfile
from medbox.services.data_service import DataService

router = APIRouter()


@router.get("/summary")
async def get_dashboard_summary(
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Resumen de cajas, medicamentos y alertas del usuario
    """
    return service.get_summary(current_user.id)
