"""
Pricing schema service layer
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.exceptions import DuplicateError, NotFoundError
from rental_quotes.models import PricingSchema
from rental_quotes.schemas.pricing_schema import PricingSchemaCreate, PricingSchemaUpdate

logger = logging.getLogger(__name__)


class PricingSchemaService:
    """CRUD for pricing schemas. Deleting one detaches it from its quotes."""

    async def get_all(self, db: AsyncSession) -> list[PricingSchema]:
        result = await db.execute(select(PricingSchema).order_by(PricingSchema.name))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, schema_id: uuid.UUID) -> PricingSchema:
        schema = await db.get(PricingSchema, schema_id)
        if schema is None:
            logger.warning("Pricing schema not found: %s", schema_id)
            raise NotFoundError(f"Pricing schema {schema_id} not found")
        return schema

    async def _flush(self, db: AsyncSession, name: str) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Duplicate pricing schema name %r: %s", name, e.orig)
            raise DuplicateError(f"Pricing schema '{name}' already exists") from e

    async def create(self, db: AsyncSession, data: PricingSchemaCreate) -> PricingSchema:
        values = data.model_dump()
        values["calculation_method"] = data.calculation_method.value
        schema = PricingSchema(**values)
        db.add(schema)
        await self._flush(db, data.name)
        await db.refresh(schema)
        logger.info("Created pricing schema %s (%s)", schema.id, schema.name)
        return schema

    async def update(self, db: AsyncSession, schema_id: uuid.UUID, data: PricingSchemaUpdate) -> PricingSchema:
        schema = await self.get_by_id(db, schema_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field != "description":
                continue
            setattr(schema, field, value.value if field == "calculation_method" else value)
        await self._flush(db, schema.name)
        await db.refresh(schema)
        logger.info("Updated pricing schema %s", schema_id)
        return schema

    async def delete(self, db: AsyncSession, schema_id: uuid.UUID) -> None:
        schema = await self.get_by_id(db, schema_id)
        await db.delete(schema)
        await db.flush()
        logger.info("Deleted pricing schema %s", schema_id)
