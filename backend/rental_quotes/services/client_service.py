"""
Client service layer
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.exceptions import NotFoundError
from rental_quotes.models import Client
from rental_quotes.schemas.client import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """CRUD for clients plus the lookup-by-company-name used by the public API."""

    async def get_all(self, db: AsyncSession, search: Optional[str] = None) -> list[Client]:
        stmt = select(Client).order_by(Client.company_name)
        if search:
            stmt = stmt.where(Client.company_name.ilike(f"%{search.strip()}%"))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, client_id: uuid.UUID) -> Client:
        """
        Raises:
            NotFoundError: client does not exist
        """
        client = await db.get(Client, client_id)
        if client is None:
            logger.warning("Client not found: %s", client_id)
            raise NotFoundError(f"Client {client_id} not found")
        return client

    async def create(self, db: AsyncSession, data: ClientCreate) -> Client:
        client = Client(**data.model_dump())
        db.add(client)
        await db.flush()
        await db.refresh(client)
        logger.info("Created client %s (%s)", client.id, client.company_name)
        return client

    async def update(self, db: AsyncSession, client_id: uuid.UUID, data: ClientUpdate) -> Client:
        client = await self.get_by_id(db, client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(client, field, value)
        await db.flush()
        await db.refresh(client)
        logger.info("Updated client %s", client.id)
        return client

    async def find_by_company_name(self, db: AsyncSession, company_name: str) -> Optional[Client]:
        """Exact match on the company name (oldest match wins)."""
        stmt = (
            select(Client)
            .where(Client.company_name == company_name.strip())
            .order_by(Client.created_at)
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_by_company_name(self, db: AsyncSession, data: ClientCreate) -> Client:
        """
        Returns the client with this company name, creating it if missing.

        An existing client is returned unchanged: contact data sent by a
        third party never overwrites what staff recorded.
        """
        existing = await self.find_by_company_name(db, data.company_name)
        if existing is not None:
            logger.info("Public API reused client %s (%s)", existing.id, existing.company_name)
            return existing
        return await self.create(db, data)
