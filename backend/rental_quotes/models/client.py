"""
SQLAlchemy model for the Client entity
Project: PPP Rental (Wynajem sprzętu)

Companies receiving rental quotes.
"""


from __future__ import annotations
from typing import TYPE_CHECKING, List

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rental_quotes.models import Base
from rental_quotes.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from rental_quotes.models.quote import Quote


class Client(Base, UUIDMixin, TimestampMixin):
    """
    Client master data.

    Attributes:
        company_name: Company name (required, used by the public API to
            find an existing client)
        contact_person: Contact person
        phone: Phone number
        email: Email address
        address: Postal address
        nip: Polish tax identification number

    Relationships:
        quotes: Quotes issued to the client
    """

    __tablename__ = "clients"

    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    nip: Mapped[str | None] = mapped_column(String(20), nullable=True)

    quotes: Mapped[List["Quote"]] = relationship(
        "Quote",
        back_populates="client",
        lazy="raise",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_clients_company_name", "company_name"),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, company_name={self.company_name!r})>"
