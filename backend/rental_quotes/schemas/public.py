"""
Pydantic schemas for the public (API key) endpoints
Project: PPP Rental (Wynajem sprzętu)

Third parties identify the client by company name and send only the
equipment, quantity and period of each line; prices are always resolved
server-side.
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rental_quotes.schemas.assessment import NeedsAssessmentResponseRead
from rental_quotes.schemas.client import ClientCreate
from rental_quotes.schemas.quote import QuoteRead


class PublicPricingTier(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period_start: int
    period_end: Optional[int] = None
    price_per_day: Decimal
    discount_percent: Decimal


class PublicEquipment(BaseModel):
    id: uuid.UUID
    name: str
    model: str
    description: Optional[str] = None
    category: Optional[str] = None
    available_quantity: int
    power: Optional[str] = None
    fuel_consumption_75: Optional[Decimal] = None
    fuel_consumption_per_100km: Optional[Decimal] = None
    dimensions: Optional[str] = None
    weight: Optional[str] = None
    pricing: list[PublicPricingTier] = Field(default_factory=list)


class PublicQuoteLine(BaseModel):
    equipment_id: uuid.UUID
    quantity: int = 1
    rental_period_days: int


class PublicQuoteCreate(BaseModel):
    client: ClientCreate
    equipment: list[PublicQuoteLine] = Field(..., min_length=1)
    notes: Optional[str] = None


class PublicQuoteResponse(BaseModel):
    quote: QuoteRead
    message: str


class PublicAssessmentResponse(BaseModel):
    assessment: NeedsAssessmentResponseRead
    message: str
