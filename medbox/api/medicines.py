"""
Endpoints de medicamentos dentro de una caja
"""
from fastapi import APIRouter, Depends, status
from typing import List

from medbox.core.dependencies import get_current_user, get_data_service
from medbox.schemas.medicine import MedicineCreate, MedicineResponse, MedicineUpdate
from medbox.schemas.user import UserProfile
from medbox.services.data_service import DataService

router = APIRouter()


@router.get("/{box_id}/medicines", response_model=List[MedicineResponse])
async def list_medicines(
        box_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Listar medicamentos de la caja
    """
    box = service.get_box(box_id, current_user.id)
    return [MedicineResponse.from_medicine(m) for m in box.medicines]


@router.post("/{box_id}/medicines", response_model=MedicineResponse, status_code=status.HTTP_201_CREATED)
async def add_medicine(
        box_id: str,
        medicine_data: MedicineCreate,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Agregar medicamento
    """
    service.get_box(box_id, current_user.id)
    medicine = service.add_medicine(box_id, medicine_data)
    return MedicineResponse.from_medicine(medicine)


@router.put("/{box_id}/medicines/{medicine_id}", response_model=MedicineResponse)
async def update_medicine(
        box_id: str,
        medicine_id: str,
        medicine_update: MedicineUpdate,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Actualizar medicamento
    """
    service.get_box(box_id, current_user.id)
    medicine = service.update_medicine(box_id, medicine_id, medicine_update)
    return MedicineResponse.from_medicine(medicine)


@router.delete("/{box_id}/medicines/{medicine_id}")
async def delete_medicine(
        box_id: str,
        medicine_id: str,
        current_user: UserProfile = Depends(get_current_user),
        service: DataService = Depends(get_data_service)
):
    """
    Eliminar medicamento y sus alertas
    """
    service.get_box(box_id, current_user.id)
    medicine = service.delete_medicine(box_id, medicine_id)
    return {"message": f"{medicine.name} eliminado exitosamente"}
