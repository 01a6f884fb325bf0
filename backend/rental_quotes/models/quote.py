"""
SQLAlchemy models for quotes
Project: PPP Rental (Wynajem sprzętu)

Contains:
- Quote: rental quote header with derived totals
- QuoteItem: equipment line with price snapshot and optional cost components
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rental_quotes.models import Base
from rental_quotes.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from rental_quotes.models.client import Client
    from rental_quotes.models.equipment import Equipment
    from rental_quotes.models.pricing_schema import PricingSchema


class Quote(Base, UUIDMixin, TimestampMixin):
    """
    Rental quote.

    total_net and total_gross are always recomputed from the items'
    total_price; they are never edited directly.

    Attributes:
        quote_number: Number (SEQ/MM.YYYY, or GUE-YYYY-NNNNNN for guests);
            unique together with numbering_date, since SEQ restarts daily
        numbering_date: Local calendar day used by daily numbering
        client_id: UUID of the client
        created_by_id: Gateway user id of the creator (None for guest/API quotes)
        created_by_name: Creator display name captured at creation
        pricing_schema_id: Pricing schema reference (optional)
        is_guest_quote: True for quotes created without a user
        guest_email: Contact email supplied by a guest
        status: draft | pending | approved | rejected
        total_net: Sum of item totals
        total_gross: total_net including VAT
        notes: Free-text notes

    Relationships:
        client: Client
        items: Quote items (owned, cascade delete)
        pricing_schema: Pricing schema
    """

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
        doc="Quote number (SEQ/MM.YYYY or GUE-YYYY-NNNNNN)",
    )

    numbering_date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        doc="Calendar day (reference time zone) the sequence number belongs to",
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_by_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    pricing_schema_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("pricing_schemas.id", ondelete="SET NULL"),
        nullable=True,
    )

    is_guest_quote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    guest_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    total_net: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    total_gross: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="quotes",
        lazy="selectin",
    )

    items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.position",
        lazy="selectin",
    )

    pricing_schema: Mapped["PricingSchema | None"] = relationship(
        "PricingSchema",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_quotes_created_at", "created_at"),
        UniqueConstraint("quote_number", "numbering_date", name="uq_quotes_number_per_day"),
        CheckConstraint("total_net >= 0", name="ck_quotes_total_net_positive"),
        CheckConstraint("total_gross >= 0", name="ck_quotes_total_gross_positive"),
        CheckConstraint(
            "status IN ('draft', 'pending', 'approved', 'rejected')",
            name="ck_quotes_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number={self.quote_number}, total_net={self.total_net})>"


class QuoteItem(Base, UUIDMixin, TimestampMixin):
    """
    Quote line for one equipment.

    price_per_day and discount_percent are a snapshot of the tier resolved
    when the line was priced; later catalog changes do not alter the quote.
    Each optional cost component keeps its flag, its inputs and its computed
    sub-total so the printed quote can itemize it.
    """

    __tablename__ = "quote_items"

    quote_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1, doc="Line order within the quote")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rental_period_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # ------------------------------------------------------------
    # Price snapshot
    # ------------------------------------------------------------
    price_per_day: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Fuel
    # ------------------------------------------------------------
    include_fuel_cost: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    calculation_type: Mapped[str] = mapped_column(String(20), nullable=False, default="motohours")
    fuel_consumption_lh: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    hours_per_day: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    fuel_consumption_per_100km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    kilometers_per_day: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    fuel_price_per_liter: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    total_fuel_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------
    include_installation_cost: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    installation_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    number_of_technicians: Mapped[int | None] = mapped_column(Integer, nullable=True)
    service_rate_per_technician: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    travel_rate_per_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    total_installation_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Disassembly
    # ------------------------------------------------------------
    include_disassembly_cost: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disassembly_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    disassembly_number_of_technicians: Mapped[int | None] = mapped_column(Integer, nullable=True)
    disassembly_service_rate_per_technician: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    disassembly_travel_rate_per_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    total_disassembly_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Travel / service visits
    # ------------------------------------------------------------
    include_travel_service_cost: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    travel_service_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    travel_service_number_of_technicians: Mapped[int | None] = mapped_column(Integer, nullable=True)
    travel_service_service_rate_per_technician: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    travel_service_travel_rate_per_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    travel_service_number_of_trips: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_travel_service_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Service items
    # ------------------------------------------------------------
    include_service_items: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    service_item_1_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    service_item_2_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    service_item_3_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    service_item_4_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_service_items_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Additional equipment / accessories
    # ------------------------------------------------------------
    additional_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    accessories_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    quote: Mapped["Quote"] = relationship("Quote", back_populates="items")

    equipment: Mapped["Equipment"] = relationship(
        "Equipment",
        back_populates="quote_items",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_quote_items_quantity_positive"),
        CheckConstraint("rental_period_days >= 1", name="ck_quote_items_period_positive"),
        CheckConstraint("total_price >= 0", name="ck_quote_items_total_positive"),
        CheckConstraint(
            "calculation_type IN ('motohours', 'kilometers')",
            name="ck_quote_items_calculation_type",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<QuoteItem(id={self.id}, equipment_id={self.equipment_id}, "
            f"qty={self.quantity}, days={self.rental_period_days}, total={self.total_price})>"
        )
