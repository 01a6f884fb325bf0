"""
FastAPI router for equipment
Project: PPP Rental (Wynajem sprzętu)

Equipment CRUD plus the per-equipment sub-resources: pricing resolution,
additional equipment, service items and service costs.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import AdminCaller, CatalogManager, CurrentCaller
from rental_quotes.schemas.equipment import (
    EquipmentAdditionalRead,
    EquipmentCreate,
    EquipmentCreationResponse,
    EquipmentQuantityUpdate,
    EquipmentRead,
    EquipmentServiceCostsRead,
    EquipmentServiceCostsUpsert,
    EquipmentServiceItemCreate,
    EquipmentServiceItemRead,
    EquipmentUpdate,
    ResolvedPricing,
)
from rental_quotes.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment",
    tags=["Equipment"],
)


def get_equipment_service() -> EquipmentService:
    return EquipmentService()


# ------------------------------------------------------------
# Equipment
# ------------------------------------------------------------

@router.get(
    "",
    name="equipment_list",
    summary="List active equipment",
    response_model=list[EquipmentRead],
    status_code=status.HTTP_200_OK,
)
async def get_equipment_list(
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> list[EquipmentRead]:
    equipment = await service.get_all(db)
    return [EquipmentRead.model_validate(e) for e in equipment]


@router.get(
    "/inactive",
    name="equipment_inactive",
    summary="List deactivated equipment",
    response_model=list[EquipmentRead],
    status_code=status.HTTP_200_OK,
)
async def get_inactive_equipment(
    caller: CatalogManager,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> list[EquipmentRead]:
    equipment = await service.get_inactive(db)
    return [EquipmentRead.model_validate(e) for e in equipment]


@router.get(
    "/{equipment_id}",
    name="equipment_detail",
    summary="Equipment detail",
    response_model=EquipmentRead,
    status_code=status.HTTP_200_OK,
)
async def get_equipment(
    caller: CurrentCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentRead:
    equipment = await service.get_by_id(db, equipment_id)
    return EquipmentRead.model_validate(equipment)


@router.post(
    "",
    name="equipment_create",
    summary="Create equipment",
    description="Creates equipment. Without pricing tiers a default 1+ day tier is added "
                "and the response carries a reminder to adjust it.",
    response_model=EquipmentCreationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_equipment(
    data: EquipmentCreate,
    caller: CatalogManager,
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentCreationResponse:
    """
    Creates equipment.

    Args:
        data: Equipment data with optional pricing tiers
        caller: Admin or kierownik
        db: Database session

    Returns:
        EquipmentCreationResponse: the equipment and an optional message

    Raises:
        NotFoundError: the category does not exist
    """
    equipment, message = await service.create(db, data)
    await db.commit()
    return EquipmentCreationResponse(equipment=EquipmentRead.model_validate(equipment), message=message)


@router.put(
    "/{equipment_id}",
    name="equipment_update",
    summary="Update equipment",
    response_model=EquipmentRead,
    status_code=status.HTTP_200_OK,
)
async def update_equipment(
    data: EquipmentUpdate,
    caller: CatalogManager,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentRead:
    equipment = await service.update(db, equipment_id, data)
    await db.commit()
    return EquipmentRead.model_validate(equipment)


@router.patch(
    "/{equipment_id}/quantity",
    name="equipment_quantity",
    summary="Set stock quantities",
    response_model=EquipmentRead,
    status_code=status.HTTP_200_OK,
)
async def update_equipment_quantity(
    data: EquipmentQuantityUpdate,
    caller: CatalogManager,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentRead:
    equipment = await service.update_quantity(db, equipment_id, data)
    await db.commit()
    return EquipmentRead.model_validate(equipment)


@router.delete(
    "/{equipment_id}",
    name="equipment_deactivate",
    summary="Deactivate equipment",
    description="Soft delete: the equipment disappears from the catalog but quotes keep it.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def deactivate_equipment(
    caller: CatalogManager,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.deactivate(db, equipment_id)
    await db.commit()


@router.delete(
    "/{equipment_id}/permanent",
    name="equipment_delete_permanent",
    summary="Delete equipment permanently",
    description="Removes equipment that is not used on any quote.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_equipment_permanently(
    caller: CatalogManager,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> None:
    await service.delete_permanently(db, equipment_id)
    await db.commit()


# ------------------------------------------------------------
# Pricing resolution
# ------------------------------------------------------------

@router.get(
    "/{equipment_id}/pricing/resolve",
    name="equipment_pricing_resolve",
    summary="Resolve pricing tier",
    description="Returns the tier (price per day and discount) applied to a rental period.",
    response_model=ResolvedPricing,
    status_code=status.HTTP_200_OK,
)
async def resolve_pricing(
    caller: CurrentCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    days: int = Query(..., description="Rental period in days"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> ResolvedPricing:
    """
    Raises:
        BusinessValidationError: days < 1
        NoPricingAvailableError: no tier covers the period
    """
    tier = await service.resolve_pricing(db, equipment_id, days)
    return ResolvedPricing(
        equipment_id=equipment_id,
        rental_period_days=days,
        tier_id=tier.id,
        period_start=tier.period_start,
        period_end=tier.period_end,
        price_per_day=tier.price_per_day,
        discount_percent=tier.discount_percent,
    )


# ------------------------------------------------------------
# Additional equipment
# ------------------------------------------------------------

@router.get(
    "/{equipment_id}/additional",
    name="equipment_additional_list",
    summary="Additional equipment and accessories",
    description="Lists the extras of an equipment, creating a placeholder row when none exist.",
    response_model=list[EquipmentAdditionalRead],
    status_code=status.HTTP_200_OK,
)
async def get_equipment_additional(
    caller: CurrentCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> list[EquipmentAdditionalRead]:
    rows = await service.get_additional(db, equipment_id)
    await db.commit()
    return [EquipmentAdditionalRead.model_validate(r) for r in rows]


# ------------------------------------------------------------
# Service items / service costs
# ------------------------------------------------------------

@router.get(
    "/{equipment_id}/service-items",
    name="equipment_service_items_list",
    summary="Service items",
    response_model=list[EquipmentServiceItemRead],
    status_code=status.HTTP_200_OK,
)
async def get_service_items(
    caller: CurrentCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> list[EquipmentServiceItemRead]:
    items = await service.get_service_items(db, equipment_id)
    return [EquipmentServiceItemRead.model_validate(i) for i in items]


@router.post(
    "/{equipment_id}/service-items",
    name="equipment_service_items_create",
    summary="Create service item",
    response_model=EquipmentServiceItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_service_item(
    data: EquipmentServiceItemCreate,
    caller: AdminCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentServiceItemRead:
    item = await service.create_service_item(db, equipment_id, data)
    await db.commit()
    return EquipmentServiceItemRead.model_validate(item)


@router.get(
    "/{equipment_id}/service-costs",
    name="equipment_service_costs",
    summary="Service cost configuration",
    description="Returns null when the equipment has no configuration yet.",
    response_model=Optional[EquipmentServiceCostsRead],
    status_code=status.HTTP_200_OK,
)
async def get_service_costs(
    caller: CurrentCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> Optional[EquipmentServiceCostsRead]:
    costs = await service.get_service_costs(db, equipment_id)
    return EquipmentServiceCostsRead.model_validate(costs) if costs is not None else None


@router.post(
    "/{equipment_id}/service-costs",
    name="equipment_service_costs_upsert",
    summary="Save service cost configuration",
    response_model=EquipmentServiceCostsRead,
    status_code=status.HTTP_200_OK,
)
async def upsert_service_costs(
    data: EquipmentServiceCostsUpsert,
    caller: AdminCaller,
    equipment_id: uuid.UUID = Path(..., description="Equipment UUID"),
    db: AsyncSession = Depends(get_db),
    service: EquipmentService = Depends(get_equipment_service),
) -> EquipmentServiceCostsRead:
    costs = await service.upsert_service_costs(db, equipment_id, data)
    await db.commit()
    return EquipmentServiceCostsRead.model_validate(costs)
