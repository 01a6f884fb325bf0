"""
FastAPI router for equipment categories
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import CatalogManager, CurrentCaller
from rental_quotes.schemas.equipment import EquipmentCategoryCreate, EquipmentCategoryRead
from rental_quotes.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment-categories",
    tags=["Equipment categories"],
)


def get_equipment_service() -> EquipmentService:
    return EquipmentService()


@router.get(
    "",
    name="categories_list",
    summary="List categories",
    response_model=list[EquipmentCategoryRead],
    status_code=status.HTTP_200_OK,
)
async def get_categories(
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> list[EquipmentCategoryRead]:
    categories = await service.get_categories(db)
    return [EquipmentCategoryRead.model_validate(c) for c in categories]


@router.post(
    "",
    name="categories_create",
    summary="Create category",
    description="Creates an equipment category. Names are unique.",
    response_model=EquipmentCategoryRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    data: EquipmentCategoryCreate,
    caller: CatalogManager,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentCategoryRead:
    """
    Raises:
        DuplicateError: the name is already taken
    """
    category = await service.create_category(db, data)
    await db.commit()
    return EquipmentCategoryRead.model_validate(category)


@router.delete(
    "/{category_id}",
    name="categories_delete",
    summary="Delete category",
    description="Deletes a category that no equipment belongs to.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_category(
    caller: CatalogManager,
    category_id: uuid.UUID = Path(..., description="Category UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.delete_category(db, category_id)
    await db.commit()
