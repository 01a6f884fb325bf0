"""
Needs assessment service layer
Project: PPP Rental (Wynajem sprzętu)

Questionnaire answers ("Badanie potrzeb") numbered with the same daily
SEQ/MM.YYYY scheme as quotes, in their own stream.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.exceptions import ConflictError, NotFoundError, QuoteNumberCollisionError
from rental_quotes.models import NeedsAssessmentQuestion, NeedsAssessmentResponse
from rental_quotes.schemas.assessment import NeedsAssessmentResponseCreate
from rental_quotes.services.document_service import (
    AssessmentDocument,
    DocumentClient,
    DocumentService,
    group_answers,
)
from rental_quotes.services.numbering_service import NumberingService

logger = logging.getLogger(__name__)


class AssessmentService:
    def __init__(
        self,
        numbering: Optional[NumberingService] = None,
        documents: Optional[DocumentService] = None,
    ):
        self.numbering = numbering or NumberingService()
        self.documents = documents or DocumentService()

    async def get_questions(self, db: AsyncSession) -> list[NeedsAssessmentQuestion]:
        """Active questions ordered by category, then position."""
        result = await db.execute(
            select(NeedsAssessmentQuestion)
            .where(NeedsAssessmentQuestion.is_active == True)
            .order_by(NeedsAssessmentQuestion.category, NeedsAssessmentQuestion.position)
        )
        return list(result.scalars().all())

    async def get_responses(self, db: AsyncSession) -> list[NeedsAssessmentResponse]:
        result = await db.execute(
            select(NeedsAssessmentResponse).order_by(NeedsAssessmentResponse.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_response(self, db: AsyncSession, response_id: uuid.UUID) -> NeedsAssessmentResponse:
        response = await db.get(NeedsAssessmentResponse, response_id)
        if response is None:
            logger.warning("Needs assessment response not found: %s", response_id)
            raise NotFoundError(f"Needs assessment response {response_id} not found")
        return response

    async def create_response(
        self,
        db: AsyncSession,
        data: NeedsAssessmentResponseCreate,
        user_id: Optional[str] = None,
    ) -> NeedsAssessmentResponse:
        """
        Stores a response with the next daily number.

        Args:
            db: Database session
            data: Client fields and answers
            user_id: Creating user; None for public API submissions

        Raises:
            QuoteNumberCollisionError: numbering collision
        """
        assigned = await self.numbering.next_number(db, NeedsAssessmentResponse)
        response = NeedsAssessmentResponse(
            response_number=assigned.number,
            numbering_date=assigned.numbering_date,
            created_at=assigned.created_at,
            user_id=user_id,
            **data.model_dump(),
        )
        db.add(response)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            if "response_number" in str(e.orig):
                logger.warning("Response number %s collided on insert", assigned.number)
                raise QuoteNumberCollisionError(assigned.number) from e
            raise ConflictError("Needs assessment response could not be stored") from e

        await db.refresh(response)
        logger.info("Created needs assessment response %s (%s)", response.id, response.response_number)
        return response

    async def delete_response(self, db: AsyncSession, response_id: uuid.UUID) -> None:
        response = await self.get_response(db, response_id)
        await db.delete(response)
        await db.flush()
        logger.info("Deleted needs assessment response %s", response_id)

    async def build_document(self, db: AsyncSession, response: NeedsAssessmentResponse) -> AssessmentDocument:
        # All questions, inactive ones included, so old answers keep their labels
        result = await db.execute(
            select(NeedsAssessmentQuestion).order_by(
                NeedsAssessmentQuestion.position, NeedsAssessmentQuestion.category
            )
        )
        questions = list(result.scalars().all())

        client = None
        if response.client_company_name:
            client = DocumentClient(
                company_name=response.client_company_name,
                contact_person=response.client_contact_person,
                email=response.client_email,
                phone=response.client_phone,
                address=response.client_address,
            )

        return AssessmentDocument(
            response_number=response.response_number,
            created_at=response.created_at,
            client=client,
            categories=group_answers(questions, response.responses or {}),
        )

    async def render_html(self, db: AsyncSession, response_id: uuid.UUID) -> str:
        response = await self.get_response(db, response_id)
        return self.documents.render_assessment_html(await self.build_document(db, response))
