"""
FastAPI router for equipment pricing tiers
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import CatalogManager
from rental_quotes.schemas.equipment import PricingTierCreate, PricingTierRead, PricingTierUpdate
from rental_quotes.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment-pricing",
    tags=["Equipment pricing"],
)


def get_equipment_service() -> EquipmentService:
    return EquipmentService()


@router.post(
    "",
    name="pricing_create",
    summary="Create pricing tier",
    description="Adds a day-range tier (period_end null = open ended) to an equipment.",
    response_model=PricingTierRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_pricing(
    data: PricingTierCreate,
    caller: CatalogManager,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> PricingTierRead:
    tier = await service.create_pricing(db, data)
    await db.commit()
    return PricingTierRead.model_validate(tier)


@router.patch(
    "/{pricing_id}",
    name="pricing_update",
    summary="Update pricing tier",
    response_model=PricingTierRead,
    status_code=status.HTTP_200_OK,
)
async def update_pricing(
    data: PricingTierUpdate,
    caller: CatalogManager,
    pricing_id: uuid.UUID = Path(..., description="Pricing tier UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> PricingTierRead:
    tier = await service.update_pricing(db, pricing_id, data)
    await db.commit()
    return PricingTierRead.model_validate(tier)


@router.delete(
    "/{pricing_id}",
    name="pricing_delete",
    summary="Delete pricing tier",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_pricing(
    caller: CatalogManager,
    pricing_id: uuid.UUID = Path(..., description="Pricing tier UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.delete_pricing(db, pricing_id)
    await db.commit()
