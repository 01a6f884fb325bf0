"""
Cost component calculators
Project: PPP Rental (Wynajem sprzętu)

Pure functions computing the optional cost components of a quote line:
fuel, installation, disassembly, travel/service visits, service items and
additional equipment / accessories.

Every function works on Decimal, validates its own inputs and rounds the
result to 0.01 (ROUND_HALF_UP). Callers only invoke a calculator when the
component is enabled: a disabled component contributes 0 and its
parameters are never validated.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional, Sequence

from rental_quotes.core.config import settings
from rental_quotes.core.exceptions import BusinessValidationError

logger = logging.getLogger(__name__)

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

SERVICE_ITEM_SLOTS = 4


class FuelCalculationType(str, Enum):
    """Fuel consumption mode of a quote line."""

    MOTOHOURS = "motohours"
    KILOMETERS = "kilometers"

    @classmethod
    def parse(cls, value) -> "FuelCalculationType":
        """
        Normalizes a stored or submitted mode.

        "hourly" is accepted as an alias of motohours; unknown values are
        rejected instead of being silently treated as motohours.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        if normalized in ("hourly", "hours"):
            return cls.MOTOHOURS
        try:
            return cls(normalized)
        except ValueError:
            raise BusinessValidationError(
                f"Unknown fuel calculation type: {value!r}",
                error_code="INVALID_CALCULATION_TYPE",
            )


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def quantize_money(value: Decimal) -> Decimal:
    """Rounds an amount to 0.01 using ROUND_HALF_UP."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str) -> Decimal:
    """
    Converts a numeric input to Decimal.

    Floats go through str() so 6.5 becomes Decimal("6.5") and not its
    binary expansion.

    Raises:
        BusinessValidationError: value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise BusinessValidationError(f"{field} must be a number, got {value!r}")


def _required(value, field: str, component: str) -> Decimal:
    """Returns a non-negative Decimal or raises for a missing/negative value."""
    if value is None:
        raise BusinessValidationError(
            f"{component} is enabled but {field} is missing",
            error_code="MISSING_COST_PARAMETER",
            extra={"component": component, "field": field},
        )
    amount = to_decimal(value, field)
    if amount < 0:
        raise BusinessValidationError(
            f"{field} cannot be negative",
            error_code="NEGATIVE_COST_PARAMETER",
            extra={"component": component, "field": field},
        )
    return amount


def _optional(value, default: Decimal, field: str, component: str) -> Decimal:
    """Like _required, but falls back to `default` when the value is missing."""
    if value is None:
        return default
    return _required(value, field, component)


# ------------------------------------------------------------
# Fuel
# ------------------------------------------------------------

@dataclass(frozen=True)
class FuelParams:
    """
    Inputs of the fuel component.

    motohours uses fuel_consumption_lh and hours_per_day; kilometers uses
    fuel_consumption_per_100km and kilometers_per_day.
    """

    calculation_type: FuelCalculationType = FuelCalculationType.MOTOHOURS
    fuel_price_per_liter: Optional[Decimal] = None
    fuel_consumption_lh: Optional[Decimal] = None
    hours_per_day: Optional[Decimal] = None
    fuel_consumption_per_100km: Optional[Decimal] = None
    kilometers_per_day: Optional[Decimal] = None


@dataclass(frozen=True)
class FuelUsage:
    """Consumption figures behind a fuel cost (used by the printed quote)."""

    total_liters: Decimal
    total_kilometers: Optional[Decimal]
    cost: Decimal


def fuel_usage(params: FuelParams, rental_period_days: int) -> FuelUsage:
    """
    Computes fuel consumption and its cost.

    motohours:  fuel_consumption_lh * hours_per_day * days * price
    kilometers: (fuel_consumption_per_100km / 100) * kilometers_per_day * days * price

    Args:
        params: Fuel inputs
        rental_period_days: Rental period of the line

    Returns:
        FuelUsage: liters, kilometers (kilometers mode only) and rounded cost

    Raises:
        BusinessValidationError: missing or negative inputs
    """
    component = "fuel"
    mode = FuelCalculationType.parse(params.calculation_type)
    price = _required(params.fuel_price_per_liter, "fuel_price_per_liter", component)
    days = Decimal(rental_period_days)

    if mode is FuelCalculationType.KILOMETERS:
        per_100km = _required(params.fuel_consumption_per_100km, "fuel_consumption_per_100km", component)
        km_per_day = _required(params.kilometers_per_day, "kilometers_per_day", component)
        total_km = km_per_day * days
        liters = per_100km / HUNDRED * total_km
    else:
        per_hour = _required(params.fuel_consumption_lh, "fuel_consumption_lh", component)
        hours = _required(params.hours_per_day, "hours_per_day", component)
        total_km = None
        liters = per_hour * hours * days

    return FuelUsage(
        total_liters=liters,
        total_kilometers=total_km,
        cost=quantize_money(liters * price),
    )


def fuel_cost(params: FuelParams, rental_period_days: int) -> Decimal:
    """Fuel cost of a line, rounded to 0.01."""
    return fuel_usage(params, rental_period_days).cost


# ------------------------------------------------------------
# Installation / disassembly / travel
# ------------------------------------------------------------

@dataclass(frozen=True)
class CrewParams:
    """
    Inputs of a crew visit (installation, disassembly or travel/service).

    distance_km is the round-trip distance of one visit. Missing rates fall
    back to the configured defaults.
    """

    distance_km: Optional[Decimal] = None
    number_of_technicians: Optional[int] = None
    service_rate_per_technician: Optional[Decimal] = None
    travel_rate_per_km: Optional[Decimal] = None


@dataclass(frozen=True)
class CrewRates:
    """CrewParams with defaults applied and values validated."""

    distance_km: Decimal
    number_of_technicians: int
    service_rate_per_technician: Decimal
    travel_rate_per_km: Decimal

    @property
    def visit_cost(self) -> Decimal:
        return (
            self.distance_km * self.travel_rate_per_km
            + self.number_of_technicians * self.service_rate_per_technician
        )


def crew_rates(params: CrewParams, component: str) -> CrewRates:
    """
    Validates crew inputs and applies default rates.

    Raises:
        BusinessValidationError: missing distance/technicians, negative values
    """
    distance = _required(params.distance_km, "distance_km", component)

    if params.number_of_technicians is None:
        raise BusinessValidationError(
            f"{component} is enabled but number_of_technicians is missing",
            error_code="MISSING_COST_PARAMETER",
            extra={"component": component, "field": "number_of_technicians"},
        )
    technicians = int(params.number_of_technicians)
    if technicians < 0:
        raise BusinessValidationError(
            "number_of_technicians cannot be negative",
            error_code="NEGATIVE_COST_PARAMETER",
            extra={"component": component, "field": "number_of_technicians"},
        )

    return CrewRates(
        distance_km=distance,
        number_of_technicians=technicians,
        service_rate_per_technician=_optional(
            params.service_rate_per_technician,
            settings.default_service_rate_per_technician,
            "service_rate_per_technician",
            component,
        ),
        travel_rate_per_km=_optional(
            params.travel_rate_per_km,
            settings.default_travel_rate_per_km,
            "travel_rate_per_km",
            component,
        ),
    )


def installation_cost(params: CrewParams) -> Decimal:
    """distance_km * travel_rate_per_km + technicians * rate_per_technician."""
    return quantize_money(crew_rates(params, "installation").visit_cost)


def disassembly_cost(params: CrewParams) -> Decimal:
    """Same formula as installation, with the disassembly inputs."""
    return quantize_money(crew_rates(params, "disassembly").visit_cost)


def travel_service_cost(params: CrewParams, number_of_trips: Optional[int] = 1) -> Decimal:
    """
    Cost of service visits: one visit cost multiplied by the number of trips.

    A missing number_of_trips counts as one trip.

    Raises:
        BusinessValidationError: number_of_trips < 1 or invalid crew inputs
    """
    trips = 1 if number_of_trips is None else int(number_of_trips)
    if trips < 1:
        raise BusinessValidationError(
            "number_of_trips must be at least 1",
            error_code="INVALID_COST_PARAMETER",
            extra={"component": "travel_service", "field": "number_of_trips"},
        )
    return quantize_money(crew_rates(params, "travel_service").visit_cost * trips)


# ------------------------------------------------------------
# Service items / extras
# ------------------------------------------------------------

def service_items_cost(costs: Sequence[Optional[Decimal]]) -> Decimal:
    """
    Sum of the (up to four) service item costs.

    Missing entries count as 0.

    Raises:
        BusinessValidationError: more than four entries or a negative cost
    """
    if len(costs) > SERVICE_ITEM_SLOTS:
        raise BusinessValidationError(
            f"At most {SERVICE_ITEM_SLOTS} service items can be priced on a line"
        )
    total = ZERO
    for index, cost in enumerate(costs, start=1):
        if cost is None:
            continue
        total += _required(cost, f"service_item_{index}_cost", "service_items")
    return quantize_money(total)


def extras_cost(prices: Iterable[Decimal], quantity: int, component: str = "additional") -> Decimal:
    """
    Cost of selected additional equipment or accessories.

    The summed unit prices are multiplied by the line quantity.
    """
    total = ZERO
    for price in prices:
        total += _required(price, "price", component)
    return quantize_money(total * quantity)
