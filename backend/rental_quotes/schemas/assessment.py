"""
Pydantic schemas for needs assessments
Project: PPP Rental (Wynajem sprzętu)
"""

import datetime
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class NeedsAssessmentQuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category: str
    question: str
    question_type: str
    options: Optional[list[str]] = None
    is_required: bool
    position: int


class NeedsAssessmentResponseCreate(BaseModel):
    """
    Answers to the questionnaire.

    responses maps question id -> answer; the client fields are free text
    copied onto the response (no Client row is created).
    """
    client_company_name: Optional[str] = Field(None, max_length=255)
    client_contact_person: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_email: Optional[str] = Field(None, max_length=255)
    client_address: Optional[str] = None
    responses: dict[str, Any] = Field(default_factory=dict)


class NeedsAssessmentResponseRead(NeedsAssessmentResponseCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    response_number: str
    user_id: Optional[str] = None
    created_at: datetime.datetime
