"""
FastAPI router for equipment service items
Project: PPP Rental (Wynajem sprzętu)

Listing and creation live under /equipment/{id}/service-items.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import AdminCaller
from rental_quotes.schemas.equipment import EquipmentServiceItemRead, EquipmentServiceItemUpdate
from rental_quotes.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment-service-items",
    tags=["Equipment service items"],
)


def get_equipment_service() -> EquipmentService:
    return EquipmentService()


@router.patch(
    "/{item_id}",
    name="service_items_update",
    summary="Update service item",
    response_model=EquipmentServiceItemRead,
    status_code=status.HTTP_200_OK,
)
async def update_service_item(
    data: EquipmentServiceItemUpdate,
    caller: AdminCaller,
    item_id: uuid.UUID = Path(..., description="Service item UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentServiceItemRead:
    item = await service.update_service_item(db, item_id, data)
    await db.commit()
    return EquipmentServiceItemRead.model_validate(item)


@router.delete(
    "/{item_id}",
    name="service_items_delete",
    summary="Delete service item",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_service_item(
    caller: AdminCaller,
    item_id: uuid.UUID = Path(..., description="Service item UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.delete_service_item(db, item_id)
    await db.commit()
