"""
FastAPI router for quotes
Project: PPP Rental (Wynajem sprzętu)

Endpoints:
- GET    /quotes             - paginated list
- POST   /quotes             - create with priced lines
- POST   /quotes/guest       - guest quote (no user)
- GET    /quotes/{id}        - detail
- PUT    /quotes/{id}        - header update
- DELETE /quotes/{id}        - delete with items
- GET    /quotes/{id}/print  - printable HTML
- GET    /quotes/{id}/pdf    - PDF download
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.database import get_db
from rental_quotes.core.deps import AdminCaller, QuoteStaff
from rental_quotes.schemas.quote import (
    GuestQuoteCreate,
    QuoteCreate,
    QuoteList,
    QuoteRead,
    QuoteStatus,
    QuoteSummary,
    QuoteUpdate,
)
from rental_quotes.services.quote_service import QuoteService, total_pages

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quotes",
    tags=["Quotes"],
)


def get_quote_service() -> QuoteService:
    """
    Dependency returning a QuoteService.

    Lets tests override the service without global instances.
    """
    return QuoteService()


@router.get(
    "",
    name="quotes_list",
    summary="List quotes",
    description="Paginated quote list, newest first. Filters: status, client, number fragment.",
    response_model=QuoteList,
    status_code=status.HTTP_200_OK,
)
async def get_quotes(
    caller: QuoteStaff,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    status_filter: Optional[QuoteStatus] = Query(None, alias="status", description="Quote status"),
    client_id: Optional[uuid.UUID] = Query(None, description="Client UUID"),
    search: Optional[str] = Query(None, description="Quote number fragment"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteList:
    quotes, total = await service.get_all(
        db,
        page=page,
        per_page=per_page,
        status=status_filter.value if status_filter else None,
        client_id=client_id,
        search=search,
    )
    items = [
        QuoteSummary.model_validate(q).model_copy(
            update={"client_company_name": q.client.company_name if q.client else None}
        )
        for q in quotes
    ]
    return QuoteList(
        items=items,
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages(total, per_page),
    )


@router.post(
    "",
    name="quotes_create",
    summary="Create quote",
    description=(
        "Creates a quote with its lines. Every line is priced from the catalog; "
        "a line without a pricing tier rejects the whole quote."
    ),
    response_model=QuoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_quote(
    data: QuoteCreate,
    caller: QuoteStaff,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.create(db, data, caller)
    await db.commit()
    return QuoteRead.model_validate(quote)


@router.post(
    "/guest",
    name="quotes_create_guest",
    summary="Create guest quote",
    description="Quote without a logged-in user; numbered GUE-YYYY-XXXXXX.",
    response_model=QuoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_guest_quote(
    data: GuestQuoteCreate,
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.create_guest(db, data)
    await db.commit()
    return QuoteRead.model_validate(quote)


@router.get(
    "/{quote_id}",
    name="quotes_detail",
    summary="Quote detail",
    response_model=QuoteRead,
    status_code=status.HTTP_200_OK,
)
async def get_quote(
    caller: QuoteStaff,
    quote_id: uuid.UUID = Path(..., description="Quote UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.get_by_id(db, quote_id)
    return QuoteRead.model_validate(quote)


@router.put(
    "/{quote_id}",
    name="quotes_update",
    summary="Update quote header",
    description="Updates client, pricing schema, status or notes. Lines are edited via /quote-items.",
    response_model=QuoteRead,
    status_code=status.HTTP_200_OK,
)
async def update_quote(
    data: QuoteUpdate,
    caller: QuoteStaff,
    quote_id: uuid.UUID = Path(..., description="Quote UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteRead:
    quote = await service.update(db, quote_id, data)
    await db.commit()
    return QuoteRead.model_validate(quote)


@router.delete(
    "/{quote_id}",
    name="quotes_delete",
    summary="Delete quote",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_quote(
    caller: AdminCaller,
    quote_id: uuid.UUID = Path(..., description="Quote UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> None:
    await service.delete(db, quote_id)
    await db.commit()


@router.get(
    "/{quote_id}/print",
    name="quotes_print",
    summary="Printable quote",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
)
async def print_quote(
    caller: QuoteStaff,
    quote_id: uuid.UUID = Path(..., description="Quote UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> HTMLResponse:
    html = await service.render_html(db, quote_id)
    return HTMLResponse(content=html)


@router.get(
    "/{quote_id}/pdf",
    name="quotes_pdf",
    summary="Download quote PDF",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_quote_pdf(
    caller: QuoteStaff,
    quote_id: uuid.UUID = Path(..., description="Quote UUID"),
    db: AsyncSession = Depends(get_db),
    service: QuoteService = Depends(get_quote_service),
) -> Response:
    quote_number, pdf_bytes = await service.render_pdf(db, quote_id)
    filename = f"oferta_{quote_number.replace('/', '-')}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
