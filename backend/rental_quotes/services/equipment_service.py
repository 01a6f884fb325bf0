"""
Equipment catalog service layer
Project: PPP Rental (Wynajem sprzętu)

Categories, equipment, pricing tiers, additional equipment / accessories,
service items and service cost configuration.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.config import settings
from rental_quotes.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
)
from rental_quotes.models import (
    Equipment,
    EquipmentAdditional,
    EquipmentCategory,
    EquipmentPricing,
    EquipmentServiceCosts,
    EquipmentServiceItem,
    QuoteItem,
)
from rental_quotes.models.equipment import ADDITIONAL_TYPE
from rental_quotes.schemas.equipment import (
    EquipmentAdditionalCreate,
    EquipmentAdditionalUpdate,
    EquipmentCategoryCreate,
    EquipmentCreate,
    EquipmentQuantityUpdate,
    EquipmentServiceCostsUpsert,
    EquipmentServiceItemCreate,
    EquipmentServiceItemUpdate,
    EquipmentUpdate,
    PricingTierCreate,
    PricingTierUpdate,
)
from rental_quotes.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

DEFAULT_PRICING_MESSAGE = (
    "Sprzęt został utworzony z domyślnymi cenami {price} zł/dzień (0% rabaty). "
    "Zaktualizuj ceny w sekcji 'Cenniki sprzętu'."
)
DEFAULT_ADDITIONAL_NAME = "Dodatkowe wyposażenie 1"


def _format_price(value: Decimal) -> str:
    # 100.00 -> "100", 99.50 -> "99.5"
    text = f"{value:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


class EquipmentService:
    """
    CRUD for the equipment catalog.

    Pricing tiers are read through PricingService so the resolve endpoint
    applies exactly the rule used when quotes are priced.
    """

    def __init__(self, pricing: Optional[PricingService] = None):
        self.pricing = pricing or PricingService()

    # ------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------

    async def get_categories(self, db: AsyncSession) -> list[EquipmentCategory]:
        result = await db.execute(select(EquipmentCategory).order_by(EquipmentCategory.name))
        return list(result.scalars().all())

    async def create_category(self, db: AsyncSession, data: EquipmentCategoryCreate) -> EquipmentCategory:
        """
        Raises:
            DuplicateError: a category with this name exists
        """
        existing = await db.execute(select(EquipmentCategory).where(EquipmentCategory.name == data.name))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateError(f"Category '{data.name}' already exists")

        category = EquipmentCategory(**data.model_dump())
        db.add(category)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Duplicate category on insert: %s", e.orig)
            raise DuplicateError(f"Category '{data.name}' already exists") from e

        await db.refresh(category)
        logger.info("Created equipment category %s (%s)", category.id, category.name)
        return category

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        """
        Raises:
            NotFoundError: category does not exist
            ConflictError: equipment still belongs to the category
        """
        category = await db.get(EquipmentCategory, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")

        in_use = (
            await db.execute(
                select(func.count()).select_from(Equipment).where(Equipment.category_id == category_id)
            )
        ).scalar()
        if in_use:
            raise ConflictError(
                f"Category '{category.name}' is used by {in_use} equipment item(s)",
                error_code="CATEGORY_IN_USE",
            )

        await db.delete(category)
        await db.flush()
        logger.info("Deleted equipment category %s", category_id)

    # ------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------

    async def get_all(self, db: AsyncSession, include_inactive: bool = False) -> list[Equipment]:
        query = select(Equipment).order_by(Equipment.name)
        if not include_inactive:
            query = query.where(Equipment.is_active == True)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_inactive(self, db: AsyncSession) -> list[Equipment]:
        result = await db.execute(
            select(Equipment).where(Equipment.is_active == False).order_by(Equipment.name)
        )
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, equipment_id: uuid.UUID) -> Equipment:
        """
        Raises:
            NotFoundError: equipment does not exist
        """
        result = await db.execute(
            select(Equipment).where(Equipment.id == equipment_id).execution_options(populate_existing=True)
        )
        equipment = result.scalar_one_or_none()
        if equipment is None:
            logger.warning("Equipment not found: %s", equipment_id)
            raise NotFoundError(f"Equipment {equipment_id} not found")
        return equipment

    async def _check_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        if await db.get(EquipmentCategory, category_id) is None:
            raise NotFoundError(f"Category {category_id} not found")

    async def create(self, db: AsyncSession, data: EquipmentCreate) -> tuple[Equipment, Optional[str]]:
        """
        Creates equipment with its pricing tiers.

        Without tiers a placeholder tier (1+ days at the default price, 0%)
        is created so the equipment can be quoted right away.

        Returns:
            Tuple of (equipment, reminder message or None)
        """
        await self._check_category(db, data.category_id)

        values = data.model_dump(exclude={"pricing"})
        equipment = Equipment(**values)

        message = None
        tiers = [EquipmentPricing(**tier.model_dump()) for tier in data.pricing]
        if not tiers:
            tiers = [
                EquipmentPricing(
                    period_start=1,
                    period_end=None,
                    price_per_day=settings.default_price_per_day,
                    discount_percent=Decimal("0"),
                )
            ]
            message = DEFAULT_PRICING_MESSAGE.format(price=_format_price(settings.default_price_per_day))
        equipment.pricing = tiers

        db.add(equipment)
        await db.flush()
        logger.info("Created equipment %s (%s) with %d tier(s)", equipment.id, equipment.name, len(tiers))
        return await self.get_by_id(db, equipment.id), message

    async def update(self, db: AsyncSession, equipment_id: uuid.UUID, data: EquipmentUpdate) -> Equipment:
        """
        Raises:
            NotFoundError: equipment or new category does not exist
            BusinessValidationError: available quantity would exceed quantity
        """
        equipment = await self.get_by_id(db, equipment_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("category_id") is not None:
            await self._check_category(db, update_data["category_id"])

        quantity = update_data.get("quantity", equipment.quantity)
        available = update_data.get("available_quantity", equipment.available_quantity)
        if quantity is not None and available is not None and available > quantity:
            raise BusinessValidationError("Available quantity cannot exceed total quantity")

        for field, value in update_data.items():
            if value is None and field in ("name", "model", "category_id", "quantity", "available_quantity", "is_active"):
                continue
            setattr(equipment, field, value)

        await db.flush()
        logger.info("Updated equipment %s", equipment_id)
        return await self.get_by_id(db, equipment_id)

    async def update_quantity(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        data: EquipmentQuantityUpdate,
    ) -> Equipment:
        equipment = await self.get_by_id(db, equipment_id)
        equipment.quantity = data.quantity
        equipment.available_quantity = data.available_quantity
        await db.flush()
        logger.info(
            "Equipment %s quantity set to %d (available %d)",
            equipment_id,
            data.quantity,
            data.available_quantity,
        )
        return await self.get_by_id(db, equipment_id)

    async def deactivate(self, db: AsyncSession, equipment_id: uuid.UUID) -> None:
        """Soft delete: hides the equipment, existing quotes keep it."""
        equipment = await self.get_by_id(db, equipment_id)
        equipment.is_active = False
        await db.flush()
        logger.info("Deactivated equipment %s", equipment_id)

    async def delete_permanently(self, db: AsyncSession, equipment_id: uuid.UUID) -> None:
        """
        Removes equipment with its tiers, extras and service data.

        Raises:
            ConflictError: the equipment appears on a quote
        """
        equipment = await self.get_by_id(db, equipment_id)
        quoted = (
            await db.execute(
                select(func.count()).select_from(QuoteItem).where(QuoteItem.equipment_id == equipment_id)
            )
        ).scalar()
        if quoted:
            raise ConflictError(
                f"Equipment {equipment.name} is used on {quoted} quote item(s); deactivate it instead",
                error_code="EQUIPMENT_IN_USE",
            )

        for model in (EquipmentAdditional, EquipmentServiceItem, EquipmentServiceCosts):
            rows = await db.execute(select(model).where(model.equipment_id == equipment_id))
            for row in rows.scalars().all():
                await db.delete(row)
        await db.delete(equipment)
        await db.flush()
        logger.info("Permanently deleted equipment %s (%s)", equipment_id, equipment.name)

    # ------------------------------------------------------------
    # Pricing tiers
    # ------------------------------------------------------------

    async def _get_tier(self, db: AsyncSession, pricing_id: uuid.UUID) -> EquipmentPricing:
        tier = await db.get(EquipmentPricing, pricing_id)
        if tier is None:
            raise NotFoundError(f"Pricing tier {pricing_id} not found")
        return tier

    async def create_pricing(self, db: AsyncSession, data: PricingTierCreate) -> EquipmentPricing:
        await self.get_by_id(db, data.equipment_id)
        tier = EquipmentPricing(**data.model_dump())
        db.add(tier)
        await db.flush()
        await db.refresh(tier)
        logger.info(
            "Created pricing tier %s-%s @ %s for equipment %s",
            tier.period_start,
            tier.period_end,
            tier.price_per_day,
            tier.equipment_id,
        )
        return tier

    async def update_pricing(
        self,
        db: AsyncSession,
        pricing_id: uuid.UUID,
        data: PricingTierUpdate,
    ) -> EquipmentPricing:
        """
        Partial update of a tier.

        Raises:
            BusinessValidationError: the resulting range is inverted
        """
        tier = await self._get_tier(db, pricing_id)
        update_data = data.model_dump(exclude_unset=True)

        start = update_data.get("period_start") or tier.period_start
        end = update_data["period_end"] if "period_end" in update_data else tier.period_end
        if end is not None and end < start:
            raise BusinessValidationError("period_end must be greater than or equal to period_start")

        for field, value in update_data.items():
            if value is None and field != "period_end":
                continue
            setattr(tier, field, value)

        await db.flush()
        await db.refresh(tier)
        logger.info("Updated pricing tier %s", pricing_id)
        return tier

    async def delete_pricing(self, db: AsyncSession, pricing_id: uuid.UUID) -> None:
        tier = await self._get_tier(db, pricing_id)
        await db.delete(tier)
        await db.flush()
        logger.info("Deleted pricing tier %s", pricing_id)

    async def resolve_pricing(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        rental_period_days: int,
    ) -> EquipmentPricing:
        return await self.pricing.resolve(db, equipment_id, rental_period_days)

    # ------------------------------------------------------------
    # Additional equipment / accessories
    # ------------------------------------------------------------

    async def _list_additional(self, db: AsyncSession, equipment_id: uuid.UUID) -> list[EquipmentAdditional]:
        result = await db.execute(
            select(EquipmentAdditional)
            .where(EquipmentAdditional.equipment_id == equipment_id)
            .order_by(EquipmentAdditional.position, EquipmentAdditional.name)
        )
        return list(result.scalars().all())

    async def get_additional(self, db: AsyncSession, equipment_id: uuid.UUID) -> list[EquipmentAdditional]:
        """
        Additional equipment and accessories of one equipment.

        Equipment without any gets a zero-priced placeholder row so the
        editor always has something to rename.
        """
        await self.get_by_id(db, equipment_id)
        rows = await self._list_additional(db, equipment_id)
        if rows:
            return rows

        db.add(
            EquipmentAdditional(
                equipment_id=equipment_id,
                type=ADDITIONAL_TYPE,
                name=DEFAULT_ADDITIONAL_NAME,
                price=Decimal("0.00"),
                position=1,
            )
        )
        await db.flush()
        logger.info("Created placeholder additional equipment for %s", equipment_id)
        return await self._list_additional(db, equipment_id)

    async def _get_additional_row(self, db: AsyncSession, additional_id: uuid.UUID) -> EquipmentAdditional:
        row = await db.get(EquipmentAdditional, additional_id)
        if row is None:
            raise NotFoundError(f"Additional equipment {additional_id} not found")
        return row

    async def create_additional(self, db: AsyncSession, data: EquipmentAdditionalCreate) -> EquipmentAdditional:
        await self.get_by_id(db, data.equipment_id)
        values = data.model_dump()
        values["type"] = data.type.value
        row = EquipmentAdditional(**values)
        db.add(row)
        await db.flush()
        await db.refresh(row)
        logger.info("Created %s %s for equipment %s", row.type, row.id, row.equipment_id)
        return row

    async def update_additional(
        self,
        db: AsyncSession,
        additional_id: uuid.UUID,
        data: EquipmentAdditionalUpdate,
    ) -> EquipmentAdditional:
        row = await self._get_additional_row(db, additional_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(row, field, value.value if field == "type" else value)
        await db.flush()
        await db.refresh(row)
        logger.info("Updated additional equipment %s", additional_id)
        return row

    async def delete_additional(self, db: AsyncSession, additional_id: uuid.UUID) -> None:
        row = await self._get_additional_row(db, additional_id)
        await db.delete(row)
        await db.flush()
        logger.info("Deleted additional equipment %s", additional_id)

    # ------------------------------------------------------------
    # Service items / service costs
    # ------------------------------------------------------------

    async def get_service_items(self, db: AsyncSession, equipment_id: uuid.UUID) -> list[EquipmentServiceItem]:
        await self.get_by_id(db, equipment_id)
        result = await db.execute(
            select(EquipmentServiceItem)
            .where(EquipmentServiceItem.equipment_id == equipment_id)
            .order_by(EquipmentServiceItem.position)
        )
        return list(result.scalars().all())

    async def create_service_item(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        data: EquipmentServiceItemCreate,
    ) -> EquipmentServiceItem:
        await self.get_by_id(db, equipment_id)
        item = EquipmentServiceItem(equipment_id=equipment_id, **data.model_dump())
        db.add(item)
        await db.flush()
        await db.refresh(item)
        logger.info("Created service item %s for equipment %s", item.id, equipment_id)
        return item

    async def _get_service_item(self, db: AsyncSession, item_id: uuid.UUID) -> EquipmentServiceItem:
        item = await db.get(EquipmentServiceItem, item_id)
        if item is None:
            raise NotFoundError(f"Service item {item_id} not found")
        return item

    async def update_service_item(
        self,
        db: AsyncSession,
        item_id: uuid.UUID,
        data: EquipmentServiceItemUpdate,
    ) -> EquipmentServiceItem:
        item = await self._get_service_item(db, item_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field != "item_description":
                continue
            setattr(item, field, value)
        await db.flush()
        await db.refresh(item)
        logger.info("Updated service item %s", item_id)
        return item

    async def delete_service_item(self, db: AsyncSession, item_id: uuid.UUID) -> None:
        item = await self._get_service_item(db, item_id)
        await db.delete(item)
        await db.flush()
        logger.info("Deleted service item %s", item_id)

    async def get_service_costs(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
    ) -> Optional[EquipmentServiceCosts]:
        await self.get_by_id(db, equipment_id)
        result = await db.execute(
            select(EquipmentServiceCosts).where(EquipmentServiceCosts.equipment_id == equipment_id)
        )
        return result.scalar_one_or_none()

    async def upsert_service_costs(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        data: EquipmentServiceCostsUpsert,
    ) -> EquipmentServiceCosts:
        costs = await self.get_service_costs(db, equipment_id)
        if costs is None:
            costs = EquipmentServiceCosts(equipment_id=equipment_id, **data.model_dump())
            db.add(costs)
            action = "Created"
        else:
            for field, value in data.model_dump().items():
                setattr(costs, field, value)
            action = "Updated"
        await db.flush()
        await db.refresh(costs)
        logger.info("%s service costs for equipment %s", action, equipment_id)
        return costs
