"""
SQLAlchemy model for pricing schemas
Project: PPP Rental (Wynajem sprzętu)
"""

from __future__ import annotations

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_quotes.models import Base
from rental_quotes.models.mixins import TimestampMixin, UUIDMixin


class PricingSchema(Base, UUIDMixin, TimestampMixin):
    """
    Named pricing schema attached to quotes.

    calculation_method describes how tiers are meant to be read
    ("progressive" or "first_day"); the tier resolver itself is the same for
    every schema.
    """

    __tablename__ = "pricing_schemas"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    calculation_method: Mapped[str] = mapped_column(String(30), nullable=False, default="progressive")
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<PricingSchema(id={self.id}, name={self.name!r})>"
