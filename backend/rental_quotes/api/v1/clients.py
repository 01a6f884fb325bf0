"""
FastAPI router for clients
Project: PPP Rental (Wynajem sprzętu)
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import CurrentCaller
from rental_quotes.schemas.client import ClientCreate, ClientRead, ClientUpdate
from rental_quotes.services.client_service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
)


def get_client_service() -> ClientService:
    """
    Dependency returning a ClientService.

    Lets tests override the service without global instances.
    """
    return ClientService()


@router.get(
    "",
    name="clients_list",
    summary="List clients",
    description="Clients ordered by company name, optionally filtered by a name fragment.",
    response_model=list[ClientRead],
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    caller: CurrentCaller,
    search: Optional[str] = Query(None, description="Company name fragment"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> list[ClientRead]:
    clients = await service.get_all(db, search=search)
    return [ClientRead.model_validate(c) for c in clients]


@router.get(
    "/{client_id}",
    name="clients_detail",
    summary="Client detail",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def get_client(
    caller: CurrentCaller,
    client_id: uuid.UUID = Path(..., description="Client UUID"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.get_by_id(db, client_id)
    return ClientRead.model_validate(client)


@router.post(
    "",
    name="clients_create",
    summary="Create client",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    data: ClientCreate,
    caller: CurrentCaller,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.create(db, data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.put(
    "/{client_id}",
    name="clients_update",
    summary="Update client",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def update_client(
    data: ClientUpdate,
    caller: CurrentCaller,
    client_id: uuid.UUID = Path(..., description="Client UUID"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Raises:
        NotFoundError: the client does not exist
    """
    client = await service.update(db, client_id, data)
    await db.commit()
    return ClientRead.model_validate(client)
