"""
Pydantic schemas for PPP Rental

Request validation and response serialization for the API.
"""

from rental_quotes.schemas.client import ClientCreate, ClientRead, ClientUpdate
from rental_quotes.schemas.equipment import (
    AdditionalType,
    EquipmentAdditionalCreate,
    EquipmentAdditionalRead,
    EquipmentAdditionalUpdate,
    EquipmentCategoryCreate,
    EquipmentCategoryRead,
    EquipmentCreate,
    EquipmentCreationResponse,
    EquipmentQuantityUpdate,
    EquipmentRead,
    EquipmentServiceCostsRead,
    EquipmentServiceCostsUpsert,
    EquipmentServiceItemCreate,
    EquipmentServiceItemRead,
    EquipmentServiceItemUpdate,
    EquipmentUpdate,
    PricingTierBase,
    PricingTierCreate,
    PricingTierRead,
    PricingTierUpdate,
    ResolvedPricing,
)
from rental_quotes.schemas.pricing_schema import (
    PricingSchemaCreate,
    PricingSchemaRead,
    PricingSchemaUpdate,
)
from rental_quotes.schemas.quote import (
    GuestQuoteCreate,
    QuoteCreate,
    QuoteItemCreate,
    QuoteItemInput,
    QuoteItemRead,
    QuoteList,
    QuoteRead,
    QuoteStatus,
    QuoteSummary,
    QuoteUpdate,
)
from rental_quotes.schemas.assessment import (
    NeedsAssessmentQuestionRead,
    NeedsAssessmentResponseCreate,
    NeedsAssessmentResponseRead,
)
from rental_quotes.schemas.public import (
    PublicAssessmentResponse,
    PublicEquipment,
    PublicPricingTier,
    PublicQuoteCreate,
    PublicQuoteLine,
    PublicQuoteResponse,
)

__all__ = [
    "AdditionalType",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    "EquipmentAdditionalCreate",
    "EquipmentAdditionalRead",
    "EquipmentAdditionalUpdate",
    "EquipmentCategoryCreate",
    "EquipmentCategoryRead",
    "EquipmentCreate",
    "EquipmentCreationResponse",
    "EquipmentQuantityUpdate",
    "EquipmentRead",
    "EquipmentServiceCostsRead",
    "EquipmentServiceCostsUpsert",
    "EquipmentServiceItemCreate",
    "EquipmentServiceItemRead",
    "EquipmentServiceItemUpdate",
    "EquipmentUpdate",
    "GuestQuoteCreate",
    "NeedsAssessmentQuestionRead",
    "NeedsAssessmentResponseCreate",
    "NeedsAssessmentResponseRead",
    "PricingSchemaCreate",
    "PricingSchemaRead",
    "PricingSchemaUpdate",
    "PricingTierBase",
    "PricingTierCreate",
    "PricingTierRead",
    "PricingTierUpdate",
    "PublicAssessmentResponse",
    "PublicEquipment",
    "PublicPricingTier",
    "PublicQuoteCreate",
    "PublicQuoteLine",
    "PublicQuoteResponse",
    "QuoteCreate",
    "QuoteItemCreate",
    "QuoteItemInput",
    "QuoteItemRead",
    "QuoteList",
    "QuoteRead",
    "QuoteStatus",
    "QuoteSummary",
    "QuoteUpdate",
    "ResolvedPricing",
]
