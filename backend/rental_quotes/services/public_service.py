"""
Public API service layer
Project: PPP Rental (Wynajem sprzętu)

Flows available to third parties holding an API key: the equipment list
with prices, quote requests and needs assessment submissions.
"""

import logging
import uuid
from collections import OrderedDict
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.config import settings
from rental_quotes.models import Equipment, EquipmentCategory, PricingSchema, Quote
from rental_quotes.schemas.assessment import NeedsAssessmentQuestionRead, NeedsAssessmentResponseCreate
from rental_quotes.schemas.public import PublicEquipment, PublicPricingTier, PublicQuoteCreate
from rental_quotes.schemas.quote import QuoteItemInput
from rental_quotes.services.assessment_service import AssessmentService
from rental_quotes.services.client_service import ClientService
from rental_quotes.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

API_TITLE = "PPP :: Program Equipment Rental API"
API_VERSION = "1.0.0"
PUBLIC_PREFIX = "/api/v1/public"


class PublicService:
    def __init__(
        self,
        quotes: Optional[QuoteService] = None,
        assessments: Optional[AssessmentService] = None,
        clients: Optional[ClientService] = None,
    ):
        self.quotes = quotes or QuoteService()
        self.assessments = assessments or AssessmentService()
        self.clients = clients or ClientService()

    async def list_equipment(self, db: AsyncSession) -> list[PublicEquipment]:
        """Active equipment with stock, by category name then name."""
        result = await db.execute(
            select(Equipment, EquipmentCategory.name)
            .join(EquipmentCategory, Equipment.category_id == EquipmentCategory.id)
            .where(Equipment.is_active == True, Equipment.available_quantity > 0)
            .order_by(EquipmentCategory.name, Equipment.name)
        )
        return [
            PublicEquipment(
                id=equipment.id,
                name=equipment.name,
                model=equipment.model,
                description=equipment.description,
                category=category_name,
                available_quantity=equipment.available_quantity,
                power=equipment.power,
                fuel_consumption_75=equipment.fuel_consumption_75,
                fuel_consumption_per_100km=equipment.fuel_consumption_per_100km,
                dimensions=equipment.dimensions,
                weight=equipment.weight,
                pricing=[PublicPricingTier.model_validate(tier) for tier in equipment.pricing],
            )
            for equipment, category_name in result.all()
        ]

    async def _default_pricing_schema_id(self, db: AsyncSession) -> Optional[uuid.UUID]:
        schema_id = settings.default_pricing_schema_id
        if schema_id is None:
            return None
        if await db.get(PricingSchema, schema_id) is None:
            logger.warning("Configured default pricing schema %s does not exist", schema_id)
            return None
        return schema_id

    async def create_quote(self, db: AsyncSession, data: PublicQuoteCreate) -> Quote:
        """
        Creates a quote requested through the public API.

        Every line is priced before the client is looked up or stored: a
        single line without pricing rejects the whole request.

        Raises:
            NotFoundError: unknown equipment
            BusinessValidationError / NoPricingAvailableError: a line was rejected
        """
        lines = [
            QuoteItemInput(
                equipment_id=line.equipment_id,
                quantity=line.quantity,
                rental_period_days=line.rental_period_days,
            )
            for line in data.equipment
        ]
        priced = await self.quotes.price_lines(db, lines)

        client = await self.clients.upsert_by_company_name(db, data.client)
        assigned = await self.quotes.numbering.next_number(db, Quote)
        quote = await self.quotes.store_quote(
            db,
            priced,
            assigned,
            client_id=client.id,
            pricing_schema_id=await self._default_pricing_schema_id(db),
            is_guest_quote=False,
            status="draft",
            notes=data.notes,
        )
        logger.info("Public API created quote %s for %s", quote.quote_number, client.company_name)
        return quote

    async def create_assessment(self, db: AsyncSession, data: NeedsAssessmentResponseCreate):
        return await self.assessments.create_response(db, data, user_id=None)

    async def grouped_questions(self, db: AsyncSession) -> dict[str, Any]:
        """Active questions grouped by category: {questions: {...}, categories: [...]}."""
        grouped: "OrderedDict[str, list]" = OrderedDict()
        for question in await self.assessments.get_questions(db):
            grouped.setdefault(question.category, []).append(NeedsAssessmentQuestionRead.model_validate(question))
        return {"questions": grouped, "categories": list(grouped)}

    def docs(self) -> dict[str, Any]:
        prefix = PUBLIC_PREFIX
        return {
            "title": API_TITLE,
            "version": API_VERSION,
            "description": "Public API for creating equipment rental quotes and needs assessments",
            "authentication": {
                "type": "API Key",
                "headerName": "X-API-Key",
                "alternativeHeader": "Authorization: Bearer {api_key}",
            },
            "endpoints": {
                f"GET {prefix}/equipment": {
                    "description": "Get available equipment with pricing",
                    "permission": "quotes:create",
                },
                f"POST {prefix}/quotes": {
                    "description": "Create a new equipment rental quote",
                    "permission": "quotes:create",
                },
                f"GET {prefix}/needs-assessment/questions": {
                    "description": "Get needs assessment questions grouped by category",
                    "permission": "assessments:create",
                },
                f"POST {prefix}/needs-assessment": {
                    "description": "Submit a needs assessment response",
                    "permission": "assessments:create",
                },
            },
        }
