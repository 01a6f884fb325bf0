"""
Pydantic schemas for quotes and quote items
Project: PPP Rental (Wynajem sprzętu)

Quote line inputs carry the enable flag and parameters of every optional
cost component. Prices are never accepted from the caller: the price per
day and discount are resolved from the equipment's pricing tiers.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from rental_quotes.schemas.client import ClientCreate, ClientRead
from rental_quotes.services.cost_calculators import FuelCalculationType
from rental_quotes.services.quote_notes import parse_notes


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ------------------------------------------------------------
# Quote items
# ------------------------------------------------------------

class QuoteItemInput(BaseModel):
    """
    One equipment line of a quote.

    quantity and rental_period_days are range-checked by the line
    aggregator so API and service callers get the same error.
    """

    equipment_id: uuid.UUID
    quantity: int = Field(default=1, description="Units rented (>= 1)")
    rental_period_days: int = Field(..., description="Rental period in days (>= 1)")

    notes: Optional[str] = Field(None, description="Free-text notes for this line")
    selected_additional: list[uuid.UUID] = Field(default_factory=list)
    selected_accessories: list[uuid.UUID] = Field(default_factory=list)

    # Fuel
    include_fuel_cost: bool = False
    calculation_type: FuelCalculationType = FuelCalculationType.MOTOHOURS
    fuel_consumption_lh: Optional[Decimal] = Field(None, ge=0, description="l/h")
    hours_per_day: Optional[Decimal] = Field(None, ge=0, le=24)
    fuel_consumption_per_100km: Optional[Decimal] = Field(None, ge=0, description="l/100km")
    kilometers_per_day: Optional[Decimal] = Field(None, ge=0)
    fuel_price_per_liter: Optional[Decimal] = Field(None, ge=0)

    # Installation
    include_installation_cost: bool = False
    installation_distance_km: Optional[Decimal] = Field(None, ge=0, description="Round trip km")
    number_of_technicians: Optional[int] = Field(None, ge=0)
    service_rate_per_technician: Optional[Decimal] = Field(None, ge=0)
    travel_rate_per_km: Optional[Decimal] = Field(None, ge=0)

    # Disassembly
    include_disassembly_cost: bool = False
    disassembly_distance_km: Optional[Decimal] = Field(None, ge=0)
    disassembly_number_of_technicians: Optional[int] = Field(None, ge=0)
    disassembly_service_rate_per_technician: Optional[Decimal] = Field(None, ge=0)
    disassembly_travel_rate_per_km: Optional[Decimal] = Field(None, ge=0)

    # Travel / service visits
    include_travel_service_cost: bool = False
    travel_service_distance_km: Optional[Decimal] = Field(None, ge=0)
    travel_service_number_of_technicians: Optional[int] = Field(None, ge=0)
    travel_service_service_rate_per_technician: Optional[Decimal] = Field(None, ge=0)
    travel_service_travel_rate_per_km: Optional[Decimal] = Field(None, ge=0)
    travel_service_number_of_trips: Optional[int] = Field(None, ge=1)

    # Service items
    include_service_items: bool = False
    service_item_1_cost: Optional[Decimal] = Field(None, ge=0)
    service_item_2_cost: Optional[Decimal] = Field(None, ge=0)
    service_item_3_cost: Optional[Decimal] = Field(None, ge=0)
    service_item_4_cost: Optional[Decimal] = Field(None, ge=0)

    @field_validator("calculation_type", mode="before")
    @classmethod
    def parse_calculation_type(cls, v):
        if v is None:
            return FuelCalculationType.MOTOHOURS
        return FuelCalculationType.parse(v)


class QuoteItemCreate(QuoteItemInput):
    quote_id: uuid.UUID


class QuoteItemEquipment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    model: str


class QuoteItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quote_id: uuid.UUID
    equipment_id: uuid.UUID
    equipment: Optional[QuoteItemEquipment] = None
    quantity: int
    rental_period_days: int
    price_per_day: Decimal
    discount_percent: Decimal
    total_price: Decimal
    notes: Optional[str] = Field(None, description="Stored notes (plain text or legacy JSON)")

    include_fuel_cost: bool
    calculation_type: str
    fuel_consumption_lh: Optional[Decimal] = None
    hours_per_day: Optional[Decimal] = None
    fuel_consumption_per_100km: Optional[Decimal] = None
    kilometers_per_day: Optional[Decimal] = None
    fuel_price_per_liter: Optional[Decimal] = None
    total_fuel_cost: Decimal

    include_installation_cost: bool
    installation_distance_km: Optional[Decimal] = None
    number_of_technicians: Optional[int] = None
    service_rate_per_technician: Optional[Decimal] = None
    travel_rate_per_km: Optional[Decimal] = None
    total_installation_cost: Decimal

    include_disassembly_cost: bool
    disassembly_distance_km: Optional[Decimal] = None
    disassembly_number_of_technicians: Optional[int] = None
    disassembly_service_rate_per_technician: Optional[Decimal] = None
    disassembly_travel_rate_per_km: Optional[Decimal] = None
    total_disassembly_cost: Decimal

    include_travel_service_cost: bool
    travel_service_distance_km: Optional[Decimal] = None
    travel_service_number_of_technicians: Optional[int] = None
    travel_service_service_rate_per_technician: Optional[Decimal] = None
    travel_service_travel_rate_per_km: Optional[Decimal] = None
    travel_service_number_of_trips: Optional[int] = None
    total_travel_service_cost: Decimal

    include_service_items: bool
    service_item_1_cost: Decimal
    service_item_2_cost: Decimal
    service_item_3_cost: Decimal
    service_item_4_cost: Decimal
    total_service_items_cost: Decimal

    additional_cost: Decimal
    accessories_cost: Decimal

    @computed_field
    @property
    def user_notes(self) -> str:
        return parse_notes(self.notes).user_notes

    @computed_field
    @property
    def selected_additional(self) -> list[uuid.UUID]:
        return list(parse_notes(self.notes).selected_additional)

    @computed_field
    @property
    def selected_accessories(self) -> list[uuid.UUID]:
        return list(parse_notes(self.notes).selected_accessories)


# ------------------------------------------------------------
# Quotes
# ------------------------------------------------------------

class QuoteCreate(BaseModel):
    client_id: uuid.UUID
    pricing_schema_id: Optional[uuid.UUID] = None
    status: QuoteStatus = QuoteStatus.DRAFT
    notes: Optional[str] = None
    items: list[QuoteItemInput] = Field(default_factory=list)


class GuestQuoteCreate(BaseModel):
    """Quote submitted without a user: the client is given inline."""
    client: ClientCreate
    guest_email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    items: list[QuoteItemInput] = Field(..., min_length=1)


class QuoteUpdate(BaseModel):
    client_id: Optional[uuid.UUID] = None
    pricing_schema_id: Optional[uuid.UUID] = None
    status: Optional[QuoteStatus] = None
    notes: Optional[str] = None


class QuoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quote_number: str
    client_id: uuid.UUID
    client: Optional[ClientRead] = None
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None
    pricing_schema_id: Optional[uuid.UUID] = None
    is_guest_quote: bool
    guest_email: Optional[str] = None
    status: QuoteStatus
    total_net: Decimal
    total_gross: Decimal
    notes: Optional[str] = None
    items: list[QuoteItemRead] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime


class QuoteSummary(BaseModel):
    """Row of the quote list."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quote_number: str
    client_id: uuid.UUID
    client_company_name: Optional[str] = None
    created_by_name: Optional[str] = None
    is_guest_quote: bool
    status: QuoteStatus
    total_net: Decimal
    total_gross: Decimal
    created_at: datetime.datetime


class QuoteList(BaseModel):
    items: list[QuoteSummary]
    total: int
    page: int
    per_page: int
    total_pages: int = 0
