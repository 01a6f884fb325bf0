"""
SQLAlchemy models for needs assessments
Project: PPP Rental (Wynajem sprzętu)

Contains:
- NeedsAssessmentQuestion: questionnaire question (used to label answers)
- NeedsAssessmentResponse: numbered set of answers for a client
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Date, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_quotes.models import Base
from rental_quotes.models.mixins import TimestampMixin, UUIDMixin


class NeedsAssessmentQuestion(Base, UUIDMixin, TimestampMixin):
    """Questionnaire question, grouped by category and ordered by position."""

    __tablename__ = "needs_assessment_questions"

    category: Mapped[str] = mapped_column(String(100), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False, default="text")
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_needs_assessment_questions_category_position", "category", "position"),
    )


class NeedsAssessmentResponse(Base, UUIDMixin, TimestampMixin):
    """
    Needs assessment answers.

    response_number follows the daily SEQ/MM.YYYY scheme on its own counter,
    independent of quote numbers. responses maps question id -> answer text.
    """

    __tablename__ = "needs_assessment_responses"

    response_number: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    numbering_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    client_company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    responses: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_needs_assessment_responses_created_at", "created_at"),
        UniqueConstraint(
            "response_number", "numbering_date", name="uq_needs_assessment_responses_number_per_day"
        ),
    )

    def __repr__(self) -> str:
        return f"<NeedsAssessmentResponse(id={self.id}, number={self.response_number})>"
