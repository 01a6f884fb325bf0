"""
Pricing tier resolver
Project: PPP Rental (Wynajem sprzętu)

Finds the price per day and discount that apply to a rental period.
"""

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.exceptions import (
    BusinessValidationError,
    NoPricingAvailableError,
    NotFoundError,
)
from rental_quotes.models import Equipment, EquipmentPricing

logger = logging.getLogger(__name__)


def _tier_sort_key(tier: EquipmentPricing):
    # Greatest period_start first; among equal starts a bounded tier
    # beats an unbounded one, then the narrower range wins.
    unbounded = tier.period_end is None
    return (-tier.period_start, unbounded, tier.period_end or 0)


def validate_rental_period(rental_period_days) -> int:
    """
    Checks that a rental period is an integer number of days >= 1.

    Raises:
        BusinessValidationError: non-integer or < 1
    """
    if isinstance(rental_period_days, bool) or not isinstance(rental_period_days, int):
        raise BusinessValidationError(
            f"Rental period must be a whole number of days, got {rental_period_days!r}",
            error_code="INVALID_RENTAL_PERIOD",
        )
    if rental_period_days < 1:
        raise BusinessValidationError(
            "Rental period must be at least 1 day",
            error_code="INVALID_RENTAL_PERIOD",
            extra={"rental_period_days": rental_period_days},
        )
    return rental_period_days


def select_tier(
    tiers: Iterable[EquipmentPricing],
    rental_period_days: int,
) -> Optional[EquipmentPricing]:
    """
    Picks the tier covering `rental_period_days`.

    A tier matches when period_start <= days and period_end is NULL or
    >= days. Among several matches the greatest period_start wins.

    Args:
        tiers: Pricing tiers of one equipment (any order)
        rental_period_days: Rental period in days

    Returns:
        The matching tier, or None when no tier covers the period
    """
    matching = [tier for tier in tiers if tier.contains(rental_period_days)]
    if not matching:
        return None
    return sorted(matching, key=_tier_sort_key)[0]


class PricingService:
    """
    Resolves pricing tiers against the catalog.

    Stateless; every method takes the session to use.
    """

    async def resolve(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        rental_period_days: int,
    ) -> EquipmentPricing:
        """
        Returns the tier that applies to a rental period.

        Args:
            db: Database session
            equipment_id: Equipment UUID
            rental_period_days: Rental period (>= 1)

        Returns:
            EquipmentPricing: the applicable tier

        Raises:
            BusinessValidationError: period < 1
            NotFoundError: equipment does not exist
            NoPricingAvailableError: no tier covers the period
        """
        validate_rental_period(rental_period_days)

        result = await db.execute(
            select(Equipment)
            .where(Equipment.id == equipment_id)
            .execution_options(populate_existing=True)
        )
        equipment = result.scalar_one_or_none()
        if equipment is None:
            logger.warning("Pricing requested for unknown equipment %s", equipment_id)
            raise NotFoundError(f"Equipment {equipment_id} not found")

        tier = select_tier(equipment.pricing, rental_period_days)
        if tier is None:
            logger.warning(
                "No pricing tier for equipment %s (%s) and %d days",
                equipment.id,
                equipment.name,
                rental_period_days,
            )
            raise NoPricingAvailableError(equipment.id, rental_period_days)

        logger.debug(
            "Resolved tier %s-%s @ %s (-%s%%) for equipment %s, %d days",
            tier.period_start,
            tier.period_end,
            tier.price_per_day,
            tier.discount_percent,
            equipment.id,
            rental_period_days,
        )
        return tier
