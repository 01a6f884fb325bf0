"""
SQLAlchemy models for the equipment catalog
Project: PPP Rental (Wynajem sprzętu)

Contains:
- EquipmentCategory: catalog grouping
- Equipment: rentable equipment with stock and technical data
- EquipmentPricing: day-range pricing tiers
- EquipmentAdditional: additional equipment and accessories
- EquipmentServiceItem: named service line items (up to four used by quotes)
- EquipmentServiceCosts: service cost configuration per equipment
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rental_quotes.models import Base
from rental_quotes.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from rental_quotes.models.quote import QuoteItem


ADDITIONAL_TYPE = "additional"
ACCESSORIES_TYPE = "accessories"


class EquipmentCategory(Base, UUIDMixin, TimestampMixin):
    """Equipment category (e.g. "Agregaty prądotwórcze", "Nagrzewnice")."""

    __tablename__ = "equipment_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    equipment: Mapped[List["Equipment"]] = relationship(
        "Equipment", back_populates="category", lazy="raise", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"EquipmentCategory(name={self.name!r})"


class Equipment(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Rentable equipment.

    Attributes:
        name: Display name
        model: Manufacturer model
        category_id: UUID of the category
        quantity: Units owned
        available_quantity: Units currently available (<= quantity)
        power: Rated power (free text, e.g. "100 kW")
        fuel_consumption_75: Fuel consumption at 75% load (l/h)
        fuel_consumption_per_100km: Vehicle consumption (l/100km)
        dimensions, weight, engine, alternator: Technical data (free text)
        fuel_tank_capacity: Tank capacity (l)
        is_active: Soft delete flag

    Relationships:
        category: Equipment category
        pricing: Pricing tiers ordered by period_start
        additional: Additional equipment and accessories
        service_items: Named service line items
        service_costs: Service cost configuration
    """

    __tablename__ = "equipment"

    # ------------------------------------------------------------
    # Identification
    # ------------------------------------------------------------
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # ------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # ------------------------------------------------------------
    # Technical data
    # ------------------------------------------------------------
    power: Mapped[str | None] = mapped_column(String(50), nullable=True)
    fuel_consumption_75: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    fuel_consumption_per_100km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    dimensions: Mapped[str | None] = mapped_column(String(100), nullable=True)
    weight: Mapped[str | None] = mapped_column(String(50), nullable=True)
    engine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    alternator: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fuel_tank_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    category: Mapped["EquipmentCategory"] = relationship(
        "EquipmentCategory", back_populates="equipment", lazy="selectin"
    )

    pricing: Mapped[List["EquipmentPricing"]] = relationship(
        "EquipmentPricing",
        back_populates="equipment",
        cascade="all, delete-orphan",
        order_by="EquipmentPricing.period_start",
        lazy="selectin",
    )

    additional: Mapped[List["EquipmentAdditional"]] = relationship(
        "EquipmentAdditional",
        back_populates="equipment",
        cascade="all, delete-orphan",
        order_by="EquipmentAdditional.position",
        lazy="select",
    )

    service_items: Mapped[List["EquipmentServiceItem"]] = relationship(
        "EquipmentServiceItem",
        back_populates="equipment",
        cascade="all, delete-orphan",
        order_by="EquipmentServiceItem.position",
        lazy="select",
    )

    service_costs: Mapped[Optional["EquipmentServiceCosts"]] = relationship(
        "EquipmentServiceCosts",
        back_populates="equipment",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="select",
    )

    quote_items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem", back_populates="equipment", lazy="raise", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_equipment_quantity_positive"),
        CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= quantity",
            name="ck_equipment_available_quantity_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<Equipment(id={self.id}, name={self.name!r}, model={self.model!r})>"


class EquipmentPricing(Base, UUIDMixin, TimestampMixin):
    """
    Pricing tier for a day range.

    period_end=None means the tier has no upper bound (e.g. 30+ days).
    Overlapping tiers are allowed; resolution prefers the greatest
    period_start.
    """

    __tablename__ = "equipment_pricing"

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
    )

    period_start: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Inclusive lower bound (days)",
    )

    period_end: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="Inclusive upper bound (days), NULL = unbounded",
    )

    price_per_day: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    equipment: Mapped["Equipment"] = relationship("Equipment", back_populates="pricing")

    __table_args__ = (
        Index("ix_equipment_pricing_lookup", "equipment_id", "period_start"),
        CheckConstraint("period_start >= 1", name="ck_equipment_pricing_start_positive"),
        CheckConstraint(
            "period_end IS NULL OR period_end >= period_start",
            name="ck_equipment_pricing_range",
        ),
        CheckConstraint("price_per_day >= 0", name="ck_equipment_pricing_price_positive"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_equipment_pricing_discount_range",
        ),
    )

    def contains(self, days: int) -> bool:
        """True when the tier's day range includes `days`."""
        return self.period_start <= days and (self.period_end is None or days <= self.period_end)

    def __repr__(self) -> str:
        return (
            f"<EquipmentPricing(equipment_id={self.equipment_id}, "
            f"{self.period_start}-{self.period_end}, price={self.price_per_day})>"
        )


class EquipmentAdditional(Base, UUIDMixin, TimestampMixin):
    """Additional equipment or accessory selectable on a quote item."""

    __tablename__ = "equipment_additional"

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ADDITIONAL_TYPE,
        doc="additional (wyposażenie dodatkowe) | accessories (akcesoria)",
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    equipment: Mapped["Equipment"] = relationship("Equipment", back_populates="additional")

    __table_args__ = (
        CheckConstraint(
            "type IN ('additional', 'accessories')",
            name="ck_equipment_additional_type",
        ),
        CheckConstraint("price >= 0", name="ck_equipment_additional_price_positive"),
    )


class EquipmentServiceItem(Base, UUIDMixin, TimestampMixin):
    """Named service line item; positions 1-4 map to quote item service costs."""

    __tablename__ = "equipment_service_items"

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    equipment: Mapped["Equipment"] = relationship("Equipment", back_populates="service_items")


class EquipmentServiceCosts(Base, UUIDMixin, TimestampMixin):
    """Service cost configuration (one row per equipment)."""

    __tablename__ = "equipment_service_costs"

    equipment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    service_interval_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    service_interval_km: Mapped[int | None] = mapped_column(Integer, nullable=True)
    worker_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("2.00"))
    worker_cost_per_hour: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("100.00")
    )
    travel_rate_per_km: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("1.15")
    )

    equipment: Mapped["Equipment"] = relationship("Equipment", back_populates="service_costs")
