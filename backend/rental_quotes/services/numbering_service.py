"""
Sequential numbering of quotes and needs assessments
Project: PPP Rental (Wynajem sprzętu)

Numbers look like SEQ/MM.YYYY (e.g. 03/10.2026): SEQ follows the highest
SEQ of the same stream stored for the same calendar day, zero padded to two
digits, so deleted rows leave gaps instead of reused numbers. Guest quotes
use GUE-YYYY-NNNNNN instead and do not take part in the sequence.

The read-then-increment is not serialized. Every numbered table keeps
(number, numbering_date) unique, so a duplicate is detected and reported as
QuoteNumberCollisionError instead of being stored.
"""

import datetime
import logging
import re
from dataclasses import dataclass
from typing import Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.config import settings
from rental_quotes.core.exceptions import QuoteNumberCollisionError
from rental_quotes.models import NeedsAssessmentResponse, Quote
from rental_quotes.models.mixins import utcnow

logger = logging.getLogger(__name__)

NumberedModel = Union[type[Quote], type[NeedsAssessmentResponse]]

SEQUENTIAL_NUMBER_RE = re.compile(r"^(\d+)/\d{2}\.\d{4}$")

_NUMBER_COLUMNS = {
    Quote: "quote_number",
    NeedsAssessmentResponse: "response_number",
}


def format_sequential_number(sequence: int, day: datetime.date) -> str:
    """
    Formats SEQ/MM.YYYY.

    >>> format_sequential_number(3, datetime.date(2026, 10, 18))
    '03/10.2026'
    >>> format_sequential_number(120, datetime.date(2026, 1, 2))
    '120/01.2026'
    """
    return f"{sequence:02d}/{day.month:02d}.{day.year}"


def guest_quote_number(moment: datetime.datetime) -> str:
    """GUE-YYYY-<last six digits of the millisecond timestamp>."""
    millis = int(moment.timestamp() * 1000)
    return f"GUE-{moment.year}-{str(millis)[-6:]}"


@dataclass(frozen=True)
class AssignedNumber:
    """A number ready to be stored with its creation instant."""

    number: str
    numbering_date: datetime.date
    created_at: datetime.datetime


class NumberingService:
    """
    Generates numbers for one of the numbered streams.

    Args:
        timezone: IANA zone defining the calendar day (defaults to settings)
        max_attempts: Attempts before a collision is reported (defaults to settings)
    """

    def __init__(self, timezone: Optional[str] = None, max_attempts: Optional[int] = None):
        self.timezone = ZoneInfo(timezone or settings.numbering_timezone)
        self.max_attempts = max_attempts or settings.numbering_max_attempts

    def local_date(self, moment: datetime.datetime) -> datetime.date:
        """Calendar day of an aware timestamp in the reference time zone."""
        return moment.astimezone(self.timezone).date()

    async def last_sequence(
        self,
        db: AsyncSession,
        model: NumberedModel,
        day: datetime.date,
    ) -> int:
        """Highest SEQ of `model` numbered on `day`; guest numbers are skipped."""
        column = getattr(model, _NUMBER_COLUMNS[model])
        result = await db.execute(select(column).where(model.numbering_date == day))

        last = 0
        for number in result.scalars().all():
            match = SEQUENTIAL_NUMBER_RE.match(number or "")
            if match:
                last = max(last, int(match.group(1)))
        return last

    async def is_taken(
        self,
        db: AsyncSession,
        model: NumberedModel,
        number: str,
        day: datetime.date,
    ) -> bool:
        column = getattr(model, _NUMBER_COLUMNS[model])
        stmt = (
            select(func.count())
            .select_from(model)
            .where(column == number, model.numbering_date == day)
        )
        return (await db.execute(stmt)).scalar_one() > 0

    async def next_number(
        self,
        db: AsyncSession,
        model: NumberedModel,
        moment: Optional[datetime.datetime] = None,
    ) -> AssignedNumber:
        """
        Computes the next free SEQ/MM.YYYY number of a stream.

        Args:
            db: Database session
            model: Quote or NeedsAssessmentResponse
            moment: Creation instant (aware); defaults to now

        Returns:
            AssignedNumber: number, its numbering day and the creation instant

        Raises:
            QuoteNumberCollisionError: every candidate up to max_attempts
                was already taken
        """
        moment = moment or utcnow()
        day = self.local_date(moment)

        number = ""
        sequence = 0
        for attempt in range(1, self.max_attempts + 1):
            # Continue after the highest stored SEQ; a taken candidate moves forward
            sequence = max(await self.last_sequence(db, model, day), sequence) + 1
            number = format_sequential_number(sequence, day)
            if not await self.is_taken(db, model, number, day):
                logger.info(
                    "Assigned %s number %s (attempt %d)",
                    model.__tablename__,
                    number,
                    attempt,
                )
                return AssignedNumber(number=number, numbering_date=day, created_at=moment)

            logger.warning(
                "Sequential number %s already used in %s on %s (attempt %d/%d)",
                number,
                model.__tablename__,
                day.isoformat(),
                attempt,
                self.max_attempts,
            )

        raise QuoteNumberCollisionError(number, self.max_attempts)

    def guest_number(self, moment: Optional[datetime.datetime] = None) -> AssignedNumber:
        """Number for a guest quote (not sequential)."""
        moment = moment or utcnow()
        return AssignedNumber(
            number=guest_quote_number(moment),
            numbering_date=self.local_date(moment),
            created_at=moment,
        )
