"""
FastAPI router for pricing schemas
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import AdminCaller, CurrentCaller
from rental_quotes.schemas.pricing_schema import (
    PricingSchemaCreate,
    PricingSchemaRead,
    PricingSchemaUpdate,
)
from rental_quotes.services.pricing_schema_service import PricingSchemaService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pricing-schemas",
    tags=["Pricing schemas"],
)


def get_pricing_schema_service() -> PricingSchemaService:
    return PricingSchemaService()


@router.get(
    "",
    name="pricing_schemas_list",
    summary="List pricing schemas",
    response_model=list[PricingSchemaRead],
    status_code=status.HTTP_200_OK,
)
async def get_pricing_schemas(
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: PricingSchemaService = Depends(get_pricing_schema_service),
) -> list[PricingSchemaRead]:
    schemas = await service.get_all(db)
    return [PricingSchemaRead.model_validate(s) for s in schemas]


@router.get(
    "/{schema_id}",
    name="pricing_schemas_detail",
    summary="Pricing schema detail",
    response_model=PricingSchemaRead,
    status_code=status.HTTP_200_OK,
)
async def get_pricing_schema(
    caller: CurrentCaller,
    schema_id: uuid.UUID = Path(..., description="Pricing schema UUID"),
    db: AsyncSession = Depends(get_db),
    service: PricingSchemaService = Depends(get_pricing_schema_service),
) -> PricingSchemaRead:
    schema = await service.get_by_id(db, schema_id)
    return PricingSchemaRead.model_validate(schema)


@router.post(
    "",
    name="pricing_schemas_create",
    summary="Create pricing schema",
    response_model=PricingSchemaRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_pricing_schema(
    data: PricingSchemaCreate,
    caller: AdminCaller,
    db: AsyncSession = Depends(get_db),
    service: PricingSchemaService = Depends(get_pricing_schema_service),
) -> PricingSchemaRead:
    schema = await service.create(db, data)
    await db.commit()
    return PricingSchemaRead.model_validate(schema)


@router.patch(
    "/{schema_id}",
    name="pricing_schemas_update",
    summary="Update pricing schema",
    response_model=PricingSchemaRead,
    status_code=status.HTTP_200_OK,
)
async def update_pricing_schema(
    data: PricingSchemaUpdate,
    caller: AdminCaller,
    schema_id: uuid.UUID = Path(..., description="Pricing schema UUID"),
    db: AsyncSession = Depends(get_db),
    service: PricingSchemaService = Depends(get_pricing_schema_service),
) -> PricingSchemaRead:
    schema = await service.update(db, schema_id, data)
    await db.commit()
    return PricingSchemaRead.model_validate(schema)


@router.delete(
    "/{schema_id}",
    name="pricing_schemas_delete",
    summary="Delete pricing schema",
    description="Deletes a schema; quotes referencing it keep their prices and lose the reference.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_pricing_schema(
    caller: AdminCaller,
    schema_id: uuid.UUID = Path(..., description="Pricing schema UUID"),
    db: AsyncSession = Depends(get_db),
    service: PricingSchemaService = Depends(get_pricing_schema_service),
) -> None:
    await service.delete(db, schema_id)
    await db.commit()
