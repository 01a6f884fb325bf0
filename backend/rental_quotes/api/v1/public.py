"""
Public API for third-party integrations
Project: PPP Rental (Wynajem sprzętu)

Authenticated with API keys (X-API-Key or Authorization: Bearer) instead of
user identity. Prices are never accepted from the caller.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import ApiClient, require_api_key
from rental_quotes.schemas.assessment import (
    NeedsAssessmentResponseCreate,
    NeedsAssessmentResponseRead,
)
from rental_quotes.schemas.public import (
    PublicAssessmentResponse,
    PublicEquipment,
    PublicQuoteCreate,
    PublicQuoteResponse,
)
from rental_quotes.schemas.quote import QuoteRead
from rental_quotes.services.public_service import PublicService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/public",
    tags=["Public API"],
)


def get_public_service() -> PublicService:
    return PublicService()


@router.get(
    "/equipment",
    name="public_equipment",
    summary="Available equipment with pricing",
    response_model=list[PublicEquipment],
    status_code=status.HTTP_200_OK,
)
async def list_equipment(
    api_client: ApiClient = Depends(require_api_key("quotes:create")),
    db: AsyncSession = Depends(get_db),
    service: PublicService = Depends(get_public_service),
) -> list[PublicEquipment]:
    return await service.list_equipment(db)


@router.post(
    "/quotes",
    name="public_quotes_create",
    summary="Create quote",
    description=(
        "Creates a draft quote. The client is matched by company name or created. "
        "All lines are priced server-side; one line without pricing rejects the request."
    ),
    response_model=PublicQuoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote(
    data: PublicQuoteCreate,
    api_client: ApiClient = Depends(require_api_key("quotes:create")),
    db: AsyncSession = Depends(get_db),
    service: PublicService = Depends(get_public_service),
) -> PublicQuoteResponse:
    quote = await service.create_quote(db, data)
    await db.commit()
    return PublicQuoteResponse(
        quote=QuoteRead.model_validate(quote),
        message="Quote created successfully",
    )


@router.get(
    "/needs-assessment/questions",
    name="public_assessment_questions",
    summary="Questionnaire grouped by category",
    status_code=status.HTTP_200_OK,
)
async def get_questions(
    api_client: ApiClient = Depends(require_api_key("assessments:create")),
    db: AsyncSession = Depends(get_db),
    service: PublicService = Depends(get_public_service),
) -> dict[str, Any]:
    return await service.grouped_questions(db)


@router.post(
    "/needs-assessment",
    name="public_assessment_create",
    summary="Submit needs assessment",
    response_model=PublicAssessmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assessment(
    data: NeedsAssessmentResponseCreate,
    api_client: ApiClient = Depends(require_api_key("assessments:create")),
    db: AsyncSession = Depends(get_db),
    service: PublicService = Depends(get_public_service),
) -> PublicAssessmentResponse:
    response = await service.create_assessment(db, data)
    await db.commit()
    return PublicAssessmentResponse(
        assessment=NeedsAssessmentResponseRead.model_validate(response),
        message="Needs assessment created successfully",
    )


@router.get(
    "/docs",
    name="public_docs",
    summary="Public API description",
    status_code=status.HTTP_200_OK,
)
async def get_docs(service: PublicService = Depends(get_public_service)) -> dict[str, Any]:
    return service.docs()
