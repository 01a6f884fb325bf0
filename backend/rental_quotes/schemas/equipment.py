"""
Pydantic schemas for the equipment catalog
Project: PPP Rental (Wynajem sprzętu)

Categories, equipment, pricing tiers, additional equipment / accessories,
service items and service cost configuration.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AdditionalType(str, Enum):
    """Kind of an EquipmentAdditional row."""
    ADDITIONAL = "additional"
    ACCESSORIES = "accessories"


# ------------------------------------------------------------
# Categories
# ------------------------------------------------------------

class EquipmentCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, description="Description")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class EquipmentCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None


# ------------------------------------------------------------
# Pricing tiers
# ------------------------------------------------------------

class PricingTierBase(BaseModel):
    """
    Day-range pricing tier.

    period_end=None means "and above" (e.g. 30+ days).
    """
    period_start: int = Field(..., ge=1, description="First day of the range (inclusive)")
    period_end: Optional[int] = Field(None, ge=1, description="Last day of the range (inclusive), None = unbounded")
    price_per_day: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Price per day")
    discount_percent: Decimal = Field(
        default=Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2, description="Discount %"
    )

    @model_validator(mode="after")
    def validate_range(self):
        if self.period_end is not None and self.period_end < self.period_start:
            raise ValueError("period_end must be greater than or equal to period_start")
        return self


class PricingTierCreate(PricingTierBase):
    equipment_id: uuid.UUID


class PricingTierUpdate(BaseModel):
    """Partial update; range consistency is re-checked by the service."""
    period_start: Optional[int] = Field(None, ge=1)
    period_end: Optional[int] = Field(None, ge=1)
    price_per_day: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)


class PricingTierRead(PricingTierBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    equipment_id: uuid.UUID


class ResolvedPricing(BaseModel):
    """Result of resolving the tier for a rental period."""
    equipment_id: uuid.UUID
    rental_period_days: int
    tier_id: uuid.UUID
    period_start: int
    period_end: Optional[int] = None
    price_per_day: Decimal
    discount_percent: Decimal


# ------------------------------------------------------------
# Equipment
# ------------------------------------------------------------

class EquipmentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Equipment name")
    model: str = Field(..., min_length=1, max_length=100, description="Manufacturer model")
    description: Optional[str] = None
    category_id: uuid.UUID
    quantity: int = Field(default=1, ge=0, description="Units owned")
    available_quantity: int = Field(default=1, ge=0, description="Units available")
    power: Optional[str] = Field(None, max_length=50)
    fuel_consumption_75: Optional[Decimal] = Field(None, ge=0, description="l/h at 75% load")
    fuel_consumption_per_100km: Optional[Decimal] = Field(None, ge=0, description="l/100km")
    dimensions: Optional[str] = Field(None, max_length=100)
    weight: Optional[str] = Field(None, max_length=50)
    engine: Optional[str] = Field(None, max_length=100)
    alternator: Optional[str] = Field(None, max_length=100)
    fuel_tank_capacity: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_quantities(self):
        if self.available_quantity > self.quantity:
            raise ValueError("available_quantity cannot exceed quantity")
        return self


class EquipmentCreate(EquipmentBase):
    """
    New equipment.

    When pricing is empty a default tier (1+ days, default price, 0%) is
    created and must be adjusted by staff.
    """
    pricing: list[PricingTierBase] = Field(default_factory=list)


class EquipmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    quantity: Optional[int] = Field(None, ge=0)
    available_quantity: Optional[int] = Field(None, ge=0)
    power: Optional[str] = Field(None, max_length=50)
    fuel_consumption_75: Optional[Decimal] = Field(None, ge=0)
    fuel_consumption_per_100km: Optional[Decimal] = Field(None, ge=0)
    dimensions: Optional[str] = Field(None, max_length=100)
    weight: Optional[str] = Field(None, max_length=50)
    engine: Optional[str] = Field(None, max_length=100)
    alternator: Optional[str] = Field(None, max_length=100)
    fuel_tank_capacity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class EquipmentQuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=0)
    available_quantity: int = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_quantities(self):
        if self.available_quantity > self.quantity:
            raise ValueError("available_quantity cannot exceed quantity")
        return self


class EquipmentRead(EquipmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    is_active: bool
    category: Optional[EquipmentCategoryRead] = None
    pricing: list[PricingTierRead] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime


class EquipmentCreationResponse(BaseModel):
    """Created equipment plus a reminder when the default tier was used."""
    equipment: EquipmentRead
    message: Optional[str] = None


# ------------------------------------------------------------
# Additional equipment / accessories
# ------------------------------------------------------------

class EquipmentAdditionalCreate(BaseModel):
    equipment_id: uuid.UUID
    type: AdditionalType = AdditionalType.ADDITIONAL
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    position: int = Field(default=1, ge=1)


class EquipmentAdditionalUpdate(BaseModel):
    type: Optional[AdditionalType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    position: Optional[int] = Field(None, ge=1)


class EquipmentAdditionalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    equipment_id: uuid.UUID
    type: AdditionalType
    name: str
    price: Decimal
    position: int


# ------------------------------------------------------------
# Service items / service costs
# ------------------------------------------------------------

class EquipmentServiceItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    item_description: Optional[str] = None
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    position: int = Field(default=1, ge=1, le=4, description="Slot 1-4 on quote items")


class EquipmentServiceItemUpdate(BaseModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=200)
    item_description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    position: Optional[int] = Field(None, ge=1, le=4)


class EquipmentServiceItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    equipment_id: uuid.UUID
    item_name: str
    item_description: Optional[str] = None
    price: Decimal
    position: int


class EquipmentServiceCostsUpsert(BaseModel):
    service_interval_months: Optional[int] = Field(None, ge=0)
    service_interval_km: Optional[int] = Field(None, ge=0)
    worker_hours: Decimal = Field(default=Decimal("2.00"), ge=0)
    worker_cost_per_hour: Decimal = Field(default=Decimal("100.00"), ge=0)
    travel_rate_per_km: Decimal = Field(default=Decimal("1.15"), ge=0)


class EquipmentServiceCostsRead(EquipmentServiceCostsUpsert):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    equipment_id: uuid.UUID
