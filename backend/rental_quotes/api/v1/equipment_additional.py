"""
FastAPI router for additional equipment and accessories
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import CatalogManager
from rental_quotes.schemas.equipment import (
    EquipmentAdditionalCreate,
    EquipmentAdditionalRead,
    EquipmentAdditionalUpdate,
)
from rental_quotes.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment-additional",
    tags=["Equipment additional"],
)


def get_equipment_service() -> EquipmentService:
    return EquipmentService()


@router.post(
    "",
    name="additional_create",
    summary="Create additional equipment or accessory",
    response_model=EquipmentAdditionalRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_additional(
    data: EquipmentAdditionalCreate,
    caller: CatalogManager,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentAdditionalRead:
    row = await service.create_additional(db, data)
    await db.commit()
    return EquipmentAdditionalRead.model_validate(row)


@router.patch(
    "/{additional_id}",
    name="additional_update",
    summary="Update additional equipment or accessory",
    response_model=EquipmentAdditionalRead,
    status_code=status.HTTP_200_OK,
)
async def update_additional(
    data: EquipmentAdditionalUpdate,
    caller: CatalogManager,
    additional_id: uuid.UUID = Path(..., description="Additional equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentAdditionalRead:
    row = await service.update_additional(db, additional_id, data)
    await db.commit()
    return EquipmentAdditionalRead.model_validate(row)


@router.delete(
    "/{additional_id}",
    name="additional_delete",
    summary="Delete additional equipment or accessory",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_additional(
    caller: CatalogManager,
    additional_id: uuid.UUID = Path(..., description="Additional equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.delete_additional(db, additional_id)
    await db.commit()
