"""
SQLAlchemy database models
Project: PPP Rental (Wynajem sprzętu)

Central import of every model for metadata creation and generic use.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


from rental_quotes.models.client import Client
from rental_quotes.models.equipment import (
    Equipment,
    EquipmentAdditional,
    EquipmentCategory,
    EquipmentPricing,
    EquipmentServiceCosts,
    EquipmentServiceItem,
)
from rental_quotes.models.pricing_schema import PricingSchema
from rental_quotes.models.quote import Quote, QuoteItem
from rental_quotes.models.needs_assessment import NeedsAssessmentQuestion, NeedsAssessmentResponse

__all__ = [
    "Base",
    "Client",
    "Equipment",
    "EquipmentAdditional",
    "EquipmentCategory",
    "EquipmentPricing",
    "EquipmentServiceCosts",
    "EquipmentServiceItem",
    "PricingSchema",
    "Quote",
    "QuoteItem",
    "NeedsAssessmentQuestion",
    "NeedsAssessmentResponse",
]
