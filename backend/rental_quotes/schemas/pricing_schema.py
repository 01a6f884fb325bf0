"""
Pydantic schemas for pricing schemas
Project: PPP Rental (Wynajem sprzętu)
"""

import datetime
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CalculationMethod(str, Enum):
    PROGRESSIVE = "progressive"
    FIRST_DAY = "first_day"


class PricingSchemaCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    calculation_method: CalculationMethod = CalculationMethod.PROGRESSIVE
    is_default: bool = False
    is_active: bool = True


class PricingSchemaUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    calculation_method: Optional[CalculationMethod] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class PricingSchemaRead(PricingSchemaCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime
