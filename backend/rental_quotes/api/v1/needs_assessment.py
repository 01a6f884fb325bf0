"""
FastAPI router for needs assessments
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import AdminCaller, CurrentCaller
from rental_quotes.schemas.assessment import (
    NeedsAssessmentQuestionRead,
    NeedsAssessmentResponseCreate,
    NeedsAssessmentResponseRead,
)
from rental_quotes.services.assessment_service import AssessmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/needs-assessment",
    tags=["Needs assessment"],
)


def get_assessment_service() -> AssessmentService:
    return AssessmentService()


@router.get(
    "/questions",
    name="assessment_questions",
    summary="Active questionnaire",
    response_model=list[NeedsAssessmentQuestionRead],
    status_code=status.HTTP_200_OK,
)
async def get_questions(
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> list[NeedsAssessmentQuestionRead]:
    questions = await service.get_questions(db)
    return [NeedsAssessmentQuestionRead.model_validate(q) for q in questions]


@router.get(
    "/responses",
    name="assessment_responses_list",
    summary="List responses",
    response_model=list[NeedsAssessmentResponseRead],
    status_code=status.HTTP_200_OK,
)
async def get_responses(
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> list[NeedsAssessmentResponseRead]:
    responses = await service.get_responses(db)
    return [NeedsAssessmentResponseRead.model_validate(r) for r in responses]


@router.post(
    "/responses",
    name="assessment_responses_create",
    summary="Submit response",
    response_model=NeedsAssessmentResponseRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_response(
    data: NeedsAssessmentResponseCreate,
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> NeedsAssessmentResponseRead:
    response = await service.create_response(db, data, user_id=caller.user_id)
    await db.commit()
    return NeedsAssessmentResponseRead.model_validate(response)


@router.get(
    "/responses/{response_id}",
    name="assessment_responses_detail",
    summary="Response detail",
    response_model=NeedsAssessmentResponseRead,
    status_code=status.HTTP_200_OK,
)
async def get_response(
    caller: CurrentCaller,
    response_id: uuid.UUID = Path(..., description="Response UUID"),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> NeedsAssessmentResponseRead:
    response = await service.get_response(db, response_id)
    return NeedsAssessmentResponseRead.model_validate(response)


@router.delete(
    "/responses/{response_id}",
    name="assessment_responses_delete",
    summary="Delete response",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_response(
    caller: AdminCaller,
    response_id: uuid.UUID = Path(..., description="Response UUID"),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> None:
    await service.delete_response(db, response_id)
    await db.commit()


@router.get(
    "/responses/{response_id}/print",
    name="assessment_responses_print",
    summary="Printable response",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
)
async def print_response(
    caller: CurrentCaller,
    response_id: uuid.UUID = Path(..., description="Response UUID"),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> HTMLResponse:
    return HTMLResponse(content=await service.render_html(db, response_id))
