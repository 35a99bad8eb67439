"""
Endpoints de cajas de medicamentos
"""
from fastapi import APIRouter, Depends, status
from typing import List

from medbox.core.dependencies import get_current_user, get_data_service
from medbox.schemas.box import BoxCreate, BoxResponse, BoxUpdate
from medbox.schemas.device import ConnectionResult, DeviceResult, SyncResult
from medbox.schemas.user import UserProfile
from medbox.services.data_service import DataService

router = APIRouter()


@router.get("/", response_model=List[BoxResponse])
async def list_boxes(
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Listar las cajas del usuario
    """
    return [BoxResponse.from_box(box) for box in service.get_boxes(current_user.id)]


@router.post("/", response_model=BoxResponse, status_code=status.HTTP_201_CREATED)
async def create_box(
        box_data: BoxCreate,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Emparejar una caja nueva
    """
    box = service.create_box(current_user.id, box_data)
    return BoxResponse.from_box(box)


@router.get("/{box_id}", response_model=BoxResponse)
async def get_box(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Obtener una caja con sus medicamentos
    """
    return BoxResponse.from_box(service.get_box(box_id, current_user.id))


@router.put("/{box_id}", response_model=BoxResponse)
async def update_box(
        box_id: str,
        box_update: BoxUpdate,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Actualizar nombre, IP o estado de la caja
    """
    service.get_box(box_id, current_user.id)
    return BoxResponse.from_box(service.update_box(box_id, box_update))


@router.delete("/{box_id}")
async def delete_box(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Eliminar caja, sus medicamentos y sus alertas
    """
    service.get_box(box_id, current_user.id)
    box = service.delete_box(box_id)
    return {"message": f"{box.name} eliminada exitosamente"}


@router.post("/{box_id}/sync", response_model=SyncResult)
async def sync_box(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Enviar horarios al ESP32
    """
    return await service.sync_box(box_id, current_user.id)


@router.post("/{box_id}/connect", response_model=ConnectionResult)
async def connect_box(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Probar la conexión con el ESP32
    """
    return await service.connect_box(box_id, current_user.id)


@router.post("/{box_id}/disconnect", response_model=ConnectionResult)
async def disconnect_box(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Desconectar la caja
    """
    return await service.disconnect_box(box_id, current_user.id)


@router.post("/{box_id}/toggle", response_model=BoxResponse)
async def toggle_box_connection(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Alternar el estado de conexión (pruebas)
    """
    return BoxResponse.from_box(service.toggle_connection(box_id, current_user.id))


@router.get("/{box_id}/status", response_model=DeviceResult)
async def box_status(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Estado reportado por el ESP32
    """
    return await service.device_status(box_id, current_user.id)
