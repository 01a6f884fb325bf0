"""
Quote line aggregator and totals engine
Project: PPP Rental (Wynajem sprzętu)

compute_line() combines the base rental cost of a line with its enabled
cost components; compute_totals() sums line totals into the quote's net and
gross amounts. Both are pure: persistence is the caller's job.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from rental_quotes.core.exceptions import BusinessValidationError
from rental_quotes.services.cost_calculators import (
    HUNDRED,
    ZERO,
    CrewParams,
    FuelParams,
    disassembly_cost,
    extras_cost,
    fuel_cost,
    installation_cost,
    quantize_money,
    service_items_cost,
    to_decimal,
    travel_service_cost,
)
from rental_quotes.services.pricing_service import validate_rental_period


@dataclass(frozen=True)
class LineInput:
    """
    Everything needed to price one quote line.

    A component left as None is disabled and contributes 0.
    """

    quantity: int
    rental_period_days: int
    price_per_day: Decimal
    discount_percent: Decimal = ZERO
    fuel: Optional[FuelParams] = None
    installation: Optional[CrewParams] = None
    disassembly: Optional[CrewParams] = None
    travel_service: Optional[CrewParams] = None
    travel_service_trips: Optional[int] = None
    service_item_costs: Optional[Tuple[Optional[Decimal], ...]] = None
    additional_prices: Tuple[Decimal, ...] = field(default_factory=tuple)
    accessories_prices: Tuple[Decimal, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LineBreakdown:
    """Base cost and every component sub-total of a priced line."""

    base_cost: Decimal
    fuel_cost: Decimal = ZERO
    installation_cost: Decimal = ZERO
    disassembly_cost: Decimal = ZERO
    travel_service_cost: Decimal = ZERO
    service_items_cost: Decimal = ZERO
    additional_cost: Decimal = ZERO
    accessories_cost: Decimal = ZERO

    @property
    def components_cost(self) -> Decimal:
        return (
            self.fuel_cost
            + self.installation_cost
            + self.disassembly_cost
            + self.travel_service_cost
            + self.service_items_cost
            + self.additional_cost
            + self.accessories_cost
        )

    @property
    def total(self) -> Decimal:
        return quantize_money(self.base_cost + self.components_cost)


@dataclass(frozen=True)
class QuoteTotals:
    total_net: Decimal
    total_gross: Decimal


def base_line_cost(
    price_per_day: Decimal,
    discount_percent: Decimal,
    quantity: int,
    rental_period_days: int,
) -> Decimal:
    """price_per_day * (1 - discount/100) * quantity * days, rounded to 0.01."""
    price = to_decimal(price_per_day, "price_per_day")
    discount = to_decimal(discount_percent, "discount_percent")
    if price < 0:
        raise BusinessValidationError("price_per_day cannot be negative")
    if discount < 0 or discount > HUNDRED:
        raise BusinessValidationError("discount_percent must be between 0 and 100")
    return quantize_money(price * (1 - discount / HUNDRED) * quantity * rental_period_days)


def compute_line(line: LineInput) -> LineBreakdown:
    """
    Prices one quote line.

    Args:
        line: Resolved price snapshot plus the enabled components

    Returns:
        LineBreakdown: base cost, component sub-totals and total

    Raises:
        BusinessValidationError: quantity/period < 1, invalid price or
            missing/negative parameters of an enabled component
    """
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
        raise BusinessValidationError(
            "Quantity must be at least 1",
            error_code="INVALID_QUANTITY",
            extra={"quantity": line.quantity},
        )
    days = validate_rental_period(line.rental_period_days)

    return LineBreakdown(
        base_cost=base_line_cost(line.price_per_day, line.discount_percent, line.quantity, days),
        fuel_cost=fuel_cost(line.fuel, days) if line.fuel is not None else ZERO,
        installation_cost=(
            installation_cost(line.installation) if line.installation is not None else ZERO
        ),
        disassembly_cost=(
            disassembly_cost(line.disassembly) if line.disassembly is not None else ZERO
        ),
        travel_service_cost=(
            travel_service_cost(line.travel_service, line.travel_service_trips)
            if line.travel_service is not None
            else ZERO
        ),
        service_items_cost=(
            service_items_cost(line.service_item_costs)
            if line.service_item_costs is not None
            else ZERO
        ),
        additional_cost=extras_cost(line.additional_prices, line.quantity, "additional"),
        accessories_cost=extras_cost(line.accessories_prices, line.quantity, "accessories"),
    )


def compute_totals(line_totals: Iterable[Decimal], vat_rate: Decimal) -> QuoteTotals:
    """
    Sums line totals into net and gross.

    Always a full resummation: callers pass every persisted line total of
    the quote.

    Args:
        line_totals: total_price of every item
        vat_rate: VAT fraction (0.23 for 23%)

    Returns:
        QuoteTotals: total_net and total_gross = round(net * (1 + vat), 2)
    """
    net = ZERO
    for total in line_totals:
        net += to_decimal(total, "total_price")
    net = quantize_money(net)
    gross = quantize_money(net * (1 + to_decimal(vat_rate, "vat_rate")))
    return QuoteTotals(total_net=net, total_gross=gross)
