"""
FastAPI router for quote items
Project: PPP Rental (Wynajem sprzętu)

Every change re-prices the line and recomputes the owning quote's totals.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import QuoteStaff
from rental_quotes.schemas.quote import QuoteItemCreate, QuoteItemInput, QuoteItemRead
from rental_quotes.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quote-items",
    tags=["Quote items"],
)


def get_quote_service() -> QuoteService:
    return QuoteService()


@router.post(
    "",
    name="quote_items_create",
    summary="Add line to quote",
    response_model=QuoteItemRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote_item(
    data: QuoteItemCreate,
    caller: QuoteStaff,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteItemRead:
    item = await service.add_item(db, data)
    await db.commit()
    return QuoteItemRead.model_validate(item)


@router.put(
    "/{item_id}",
    name="quote_items_update",
    summary="Update quote line",
    description="Replaces the line input and prices it again against the current catalog.",
    response_model=QuoteItemRead,
    status_code=status.HTTP_200_OK,
)
async def update_quote_item(
    data: QuoteItemInput,
    caller: QuoteStaff,
    item_id: uuid.UUID = Path(..., description="Quote item UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteItemRead:
    item = await service.update_item(db, item_id, data)
    await db.commit()
    return QuoteItemRead.model_validate(item)


@router.delete(
    "/{item_id}",
    name="quote_items_delete",
    summary="Delete quote line",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_quote_item(
    caller: QuoteStaff,
    item_id: uuid.UUID = Path(..., description="Quote item UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> None:
    await service.delete_item(db, item_id)
    await db.commit()
