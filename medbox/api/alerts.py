"""
Endpoints de alertas
"""
from fastapi import APIRouter, Depends, Query
from typing import List

from medbox.core.dependencies import get_current_user, get_data_service
from medbox.schemas.alert import AlertCheckResult, AlertResponse
from medbox.schemas.user import UserProfile
from medbox.services.data_service import DataService

router = APIRouter()


@router.get("/", response_model=List[AlertResponse])
async def list_alerts(
        unread_only: bool = Query(False, description="Solo alertas sin leer"),
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Alertas de las últimas 24 horas
    """
    alerts = service.get_alerts(current_user.id)
    if unread_only:
        alerts = [alert for alert in alerts if not alert.is_read]
    return alerts


@router.post("/read-all")
async def mark_all_read(
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Marcar todas las alertas como leídas
    """
    changed = service.mark_all_alerts_as_read(current_user.id)
    return {"message": "Alertas marcadas como leídas", "updated": changed}


@router.post("/check-doses", response_model=AlertCheckResult)
async def check_doses(
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Ejecutar la verificación de dosis ahora
    """
    alerts = service.check_medicine_times(user_id=current_user.id)
    return AlertCheckResult.from_alerts(alerts)


@router.post("/check-stock", response_model=AlertCheckResult)
async def check_stock(
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Ejecutar la verificación de existencias ahora
    """
    alerts = service.check_low_medicines(user_id=current_user.id)
    return AlertCheckResult.from_alerts(alerts)


@router.post("/{alert_id}/read", response_model=AlertResponse)
async def mark_read(
        alert_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Marcar alerta como leída
    """
    return service.mark_alert_as_read(alert_id, current_user.id)


@router.delete("/{alert_id}")
async def delete_alert(
        alert_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Eliminar alerta
    """
    service.delete_alert(alert_id, current_user.id)
    return {"message": "Alerta eliminada exitosamente"}
