"""
Quote service layer
Project: PPP Rental (Wynajem sprzętu)

Creates, edits and prints quotes. Every line is priced against the catalog
before anything is added to the session, so a rejected line leaves no
partial quote behind. Totals are always a full resummation of the stored
item totals.
"""

import logging
import math
import uuid
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_quotes.core.config import settings
from rental_quotes.core.deps import Caller
from rental_quotes.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
    QuoteNumberCollisionError,
)
from rental_quotes.models import (
    EquipmentAdditional,
    EquipmentServiceItem,
    PricingSchema,
    Quote,
    QuoteItem,
)
from rental_quotes.models.equipment import ACCESSORIES_TYPE, ADDITIONAL_TYPE
from rental_quotes.schemas.quote import (
    GuestQuoteCreate,
    QuoteCreate,
    QuoteItemCreate,
    QuoteItemInput,
    QuoteUpdate,
)
from rental_quotes.services.client_service import ClientService
from rental_quotes.services.cost_calculators import (
    SERVICE_ITEM_SLOTS,
    ZERO,
    CrewParams,
    FuelParams,
    crew_rates,
)
from rental_quotes.services.document_service import (
    DocumentClient,
    DocumentService,
    QuoteDocument,
    build_document_line,
    format_number,
)
from rental_quotes.services.numbering_service import AssignedNumber, NumberingService
from rental_quotes.services.pricing_service import PricingService
from rental_quotes.services.quote_calculator import LineInput, compute_line, compute_totals
from rental_quotes.services.quote_notes import build_notes, parse_notes

logger = logging.getLogger(__name__)


def _crew_params(distance, technicians, rate_per_technician, rate_per_km) -> CrewParams:
    return CrewParams(
        distance_km=distance,
        number_of_technicians=technicians,
        service_rate_per_technician=rate_per_technician,
        travel_rate_per_km=rate_per_km,
    )


def _crew_columns(prefix: str, params: Optional[CrewParams], total: Decimal) -> dict:
    """
    Column values of one crew component.

    The stored rates are the ones actually applied, defaults included, so
    the printed quote does not change when the default rates do.
    """
    names = {
        "installation": (
            "installation_distance_km",
            "number_of_technicians",
            "service_rate_per_technician",
            "travel_rate_per_km",
        ),
        "disassembly": (
            "disassembly_distance_km",
            "disassembly_number_of_technicians",
            "disassembly_service_rate_per_technician",
            "disassembly_travel_rate_per_km",
        ),
        "travel_service": (
            "travel_service_distance_km",
            "travel_service_number_of_technicians",
            "travel_service_service_rate_per_technician",
            "travel_service_travel_rate_per_km",
        ),
    }[prefix]
    if params is None:
        return {f"total_{prefix}_cost": ZERO}

    rates = crew_rates(params, prefix)
    return {
        names[0]: rates.distance_km,
        names[1]: rates.number_of_technicians,
        names[2]: rates.service_rate_per_technician,
        names[3]: rates.travel_rate_per_km,
        f"total_{prefix}_cost": total,
    }


def total_pages(total: int, per_page: int) -> int:
    return math.ceil(total / per_page) if per_page else 0


class QuoteService:
    """
    Quote workflow: pricing, numbering, persistence and printing.

    Collaborators default to fresh instances configured from settings;
    tests inject their own.
    """

    def __init__(
        self,
        pricing: Optional[PricingService] = None,
        numbering: Optional[NumberingService] = None,
        documents: Optional[DocumentService] = None,
        clients: Optional[ClientService] = None,
        vat_rate: Optional[Decimal] = None,
    ):
        self.pricing = pricing or PricingService()
        self.numbering = numbering or NumberingService()
        self.documents = documents or DocumentService()
        self.clients = clients or ClientService()
        self.vat_rate = vat_rate if vat_rate is not None else settings.vat_rate

    # ------------------------------------------------------------
    # Line pricing
    # ------------------------------------------------------------

    async def _load_extras(
        self,
        db: AsyncSession,
        equipment_id: uuid.UUID,
        ids: Iterable[uuid.UUID],
        expected_type: str,
    ) -> list[EquipmentAdditional]:
        ids = list(ids)
        if not ids:
            return []

        result = await db.execute(select(EquipmentAdditional).where(EquipmentAdditional.id.in_(ids)))
        rows = {row.id: row for row in result.scalars().all()}

        selected = []
        for extra_id in ids:
            row = rows.get(extra_id)
            if row is None or row.equipment_id != equipment_id:
                logger.warning("Extra %s not found for equipment %s", extra_id, equipment_id)
                raise NotFoundError(
                    f"Additional equipment {extra_id} not found for equipment {equipment_id}"
                )
            if row.type != expected_type:
                raise BusinessValidationError(
                    f"Item {extra_id} is of type '{row.type}', expected '{expected_type}'",
                    error_code="INVALID_ADDITIONAL_TYPE",
                )
            selected.append(row)
        return selected

    async def price_line(self, db: AsyncSession, data: QuoteItemInput) -> dict[str, Any]:
        """
        Prices one line against the catalog.

        Args:
            db: Database session (read only here)
            data: Line input

        Returns:
            dict: QuoteItem column values (without quote_id/position)

        Raises:
            BusinessValidationError: invalid period/quantity or missing
                parameters of an enabled component
            NotFoundError: unknown equipment or selected extra
            NoPricingAvailableError: no tier covers the period
        """
        tier = await self.pricing.resolve(db, data.equipment_id, data.rental_period_days)

        additional = await self._load_extras(db, data.equipment_id, data.selected_additional, ADDITIONAL_TYPE)
        accessories = await self._load_extras(db, data.equipment_id, data.selected_accessories, ACCESSORIES_TYPE)

        fuel = None
        if data.include_fuel_cost:
            fuel = FuelParams(
                calculation_type=data.calculation_type,
                fuel_price_per_liter=data.fuel_price_per_liter,
                fuel_consumption_lh=data.fuel_consumption_lh,
                hours_per_day=data.hours_per_day,
                fuel_consumption_per_100km=data.fuel_consumption_per_100km,
                kilometers_per_day=data.kilometers_per_day,
            )
        installation = disassembly = travel_service = None
        if data.include_installation_cost:
            installation = _crew_params(
                data.installation_distance_km,
                data.number_of_technicians,
                data.service_rate_per_technician,
                data.travel_rate_per_km,
            )
        if data.include_disassembly_cost:
            disassembly = _crew_params(
                data.disassembly_distance_km,
                data.disassembly_number_of_technicians,
                data.disassembly_service_rate_per_technician,
                data.disassembly_travel_rate_per_km,
            )
        if data.include_travel_service_cost:
            travel_service = _crew_params(
                data.travel_service_distance_km,
                data.travel_service_number_of_technicians,
                data.travel_service_service_rate_per_technician,
                data.travel_service_travel_rate_per_km,
            )
        service_costs = None
        if data.include_service_items:
            service_costs = tuple(
                getattr(data, f"service_item_{slot}_cost") for slot in range(1, SERVICE_ITEM_SLOTS + 1)
            )

        breakdown = compute_line(
            LineInput(
                quantity=data.quantity,
                rental_period_days=data.rental_period_days,
                price_per_day=tier.price_per_day,
                discount_percent=tier.discount_percent,
                fuel=fuel,
                installation=installation,
                disassembly=disassembly,
                travel_service=travel_service,
                travel_service_trips=data.travel_service_number_of_trips or 1,
                service_item_costs=service_costs,
                additional_prices=tuple(row.price for row in additional),
                accessories_prices=tuple(row.price for row in accessories),
            )
        )

        values: dict[str, Any] = {
            "equipment_id": data.equipment_id,
            "quantity": data.quantity,
            "rental_period_days": data.rental_period_days,
            "price_per_day": tier.price_per_day,
            "discount_percent": tier.discount_percent,
            "total_price": breakdown.total,
            "notes": build_notes(data.notes, data.selected_additional, data.selected_accessories).serialize(),
            "include_fuel_cost": fuel is not None,
            "calculation_type": data.calculation_type.value,
            "fuel_consumption_lh": data.fuel_consumption_lh,
            "hours_per_day": data.hours_per_day,
            "fuel_consumption_per_100km": data.fuel_consumption_per_100km,
            "kilometers_per_day": data.kilometers_per_day,
            "fuel_price_per_liter": data.fuel_price_per_liter,
            "total_fuel_cost": breakdown.fuel_cost,
            "include_installation_cost": installation is not None,
            "include_disassembly_cost": disassembly is not None,
            "include_travel_service_cost": travel_service is not None,
            "travel_service_number_of_trips": (
                (data.travel_service_number_of_trips or 1) if travel_service is not None else None
            ),
            "include_service_items": service_costs is not None,
            "total_service_items_cost": breakdown.service_items_cost,
            "additional_cost": breakdown.additional_cost,
            "accessories_cost": breakdown.accessories_cost,
        }
        values.update(_crew_columns("installation", installation, breakdown.installation_cost))
        values.update(_crew_columns("disassembly", disassembly, breakdown.disassembly_cost))
        values.update(_crew_columns("travel_service", travel_service, breakdown.travel_service_cost))
        for slot in range(1, SERVICE_ITEM_SLOTS + 1):
            cost = getattr(data, f"service_item_{slot}_cost") if service_costs is not None else None
            values[f"service_item_{slot}_cost"] = cost if cost is not None else ZERO

        logger.debug(
            "Priced line: equipment %s x%d for %d days = %s",
            data.equipment_id,
            data.quantity,
            data.rental_period_days,
            breakdown.total,
        )
        return values

    async def price_lines(self, db: AsyncSession, items: Iterable[QuoteItemInput]) -> list[dict[str, Any]]:
        """Prices every line; the first failure aborts the whole set."""
        return [await self.price_line(db, item) for item in items]

    # ------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        status: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Quote], int]:
        """
        Paginated quote list, newest first.

        Returns:
            Tuple of (quotes, total count)
        """
        conditions = []
        if status:
            conditions.append(Quote.status == status)
        if client_id:
            conditions.append(Quote.client_id == client_id)
        if search:
            conditions.append(Quote.quote_number.ilike(f"%{search.strip()}%"))

        query = select(Quote).order_by(Quote.created_at.desc())
        count_query = select(func.count()).select_from(Quote)
        if conditions:
            query = query.where(*conditions)
            count_query = count_query.where(*conditions)

        result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
        quotes = list(result.scalars().all())
        total = (await db.execute(count_query)).scalar() or 0
        return quotes, total

    async def get_by_id(self, db: AsyncSession, quote_id: uuid.UUID) -> Quote:
        """
        Loads a quote with client, items and item equipment.

        Raises:
            NotFoundError: quote does not exist
        """
        result = await db.execute(
            select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
        )
        quote = result.scalar_one_or_none()
        if quote is None:
            logger.warning("Quote not found: %s", quote_id)
            raise NotFoundError(f"Quote {quote_id} not found")
        return quote

    async def _check_pricing_schema(self, db: AsyncSession, pricing_schema_id: Optional[uuid.UUID]) -> None:
        if pricing_schema_id is not None and await db.get(PricingSchema, pricing_schema_id) is None:
            raise NotFoundError(f"Pricing schema {pricing_schema_id} not found")

    async def store_quote(
        self,
        db: AsyncSession,
        priced_lines: list[dict[str, Any]],
        assigned: AssignedNumber,
        **header: Any,
    ) -> Quote:
        """
        Persists a quote with already priced lines.

        Args:
            db: Database session
            priced_lines: Output of price_line() for every line, in order
            assigned: Number, numbering day and creation instant
            **header: Remaining Quote columns (client_id, status, ...)

        Returns:
            Quote: reloaded with its relationships

        Raises:
            QuoteNumberCollisionError: the number was taken concurrently
            ConflictError: another integrity violation
        """
        totals = compute_totals((line["total_price"] for line in priced_lines), self.vat_rate)
        quote = Quote(
            quote_number=assigned.number,
            numbering_date=assigned.numbering_date,
            created_at=assigned.created_at,
            total_net=totals.total_net,
            total_gross=totals.total_gross,
            **header,
        )
        quote.items = [
            QuoteItem(position=position, **values)
            for position, values in enumerate(priced_lines, start=1)
        ]
        db.add(quote)

        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            if "quote_number" in str(e.orig):
                logger.warning("Quote number %s collided on insert", assigned.number)
                raise QuoteNumberCollisionError(assigned.number) from e
            logger.error("Integrity error while storing quote %s: %s", assigned.number, e.orig)
            raise ConflictError("Quote could not be stored") from e

        logger.info(
            "Created quote %s (%s) with %d items, net %s",
            quote.id,
            quote.quote_number,
            len(priced_lines),
            quote.total_net,
        )
        return await self.get_by_id(db, quote.id)

    async def create(self, db: AsyncSession, data: QuoteCreate, caller: Caller) -> Quote:
        """
        Creates a staff quote with a sequential number.

        Raises:
            NotFoundError: client, pricing schema, equipment or extra missing
            BusinessValidationError / NoPricingAvailableError: a line was rejected
            QuoteNumberCollisionError: numbering collision
        """
        await self.clients.get_by_id(db, data.client_id)
        await self._check_pricing_schema(db, data.pricing_schema_id)
        priced = await self.price_lines(db, data.items)

        assigned = await self.numbering.next_number(db, Quote)
        return await self.store_quote(
            db,
            priced,
            assigned,
            client_id=data.client_id,
            created_by_id=caller.user_id,
            created_by_name=caller.display_name,
            pricing_schema_id=data.pricing_schema_id,
            is_guest_quote=False,
            status=data.status.value,
            notes=data.notes,
        )

    async def create_guest(self, db: AsyncSession, data: GuestQuoteCreate) -> Quote:
        """Creates a guest quote; the client is always a new record."""
        priced = await self.price_lines(db, data.items)
        client = await self.clients.create(db, data.client)

        return await self.store_quote(
            db,
            priced,
            self.numbering.guest_number(),
            client_id=client.id,
            is_guest_quote=True,
            guest_email=data.guest_email,
            status="draft",
            notes=data.notes,
        )

    async def update(self, db: AsyncSession, quote_id: uuid.UUID, data: QuoteUpdate) -> Quote:
        quote = await self.get_by_id(db, quote_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("client_id") is not None:
            await self.clients.get_by_id(db, update_data["client_id"])
        if "pricing_schema_id" in update_data:
            await self._check_pricing_schema(db, update_data["pricing_schema_id"])
        if update_data.get("status") is not None:
            update_data["status"] = update_data["status"].value

        for field, value in update_data.items():
            if field in ("client_id", "status") and value is None:
                continue
            setattr(quote, field, value)

        await db.flush()
        logger.info("Updated quote %s", quote_id)
        return await self.get_by_id(db, quote_id)

    async def delete(self, db: AsyncSession, quote_id: uuid.UUID) -> None:
        quote = await self.get_by_id(db, quote_id)
        await db.delete(quote)
        await db.flush()
        logger.info("Deleted quote %s (%s)", quote_id, quote.quote_number)

    # ------------------------------------------------------------
    # Items
    # ------------------------------------------------------------

    async def get_item(self, db: AsyncSession, item_id: uuid.UUID) -> QuoteItem:
        result = await db.execute(
            select(QuoteItem).where(QuoteItem.id == item_id).execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if item is None:
            logger.warning("Quote item not found: %s", item_id)
            raise NotFoundError(f"Quote item {item_id} not found")
        return item

    async def recalculate_totals(self, db: AsyncSession, quote_id: uuid.UUID) -> Quote:
        """Recomputes total_net/total_gross from every stored item total."""
        quote = await db.get(Quote, quote_id)
        if quote is None:
            raise NotFoundError(f"Quote {quote_id} not found")

        result = await db.execute(select(QuoteItem.total_price).where(QuoteItem.quote_id == quote_id))
        totals = compute_totals(result.scalars().all(), self.vat_rate)
        quote.total_net = totals.total_net
        quote.total_gross = totals.total_gross
        await db.flush()

        logger.debug("Quote %s totals: net %s, gross %s", quote_id, totals.total_net, totals.total_gross)
        return quote

    async def add_item(self, db: AsyncSession, data: QuoteItemCreate) -> QuoteItem:
        """
        Prices and appends a line to an existing quote.

        Raises:
            NotFoundError: quote, equipment or extra missing
            BusinessValidationError / NoPricingAvailableError: line rejected
        """
        await self.get_by_id(db, data.quote_id)
        values = await self.price_line(db, data)

        last_position = (
            await db.execute(
                select(func.max(QuoteItem.position)).where(QuoteItem.quote_id == data.quote_id)
            )
        ).scalar()
        item = QuoteItem(quote_id=data.quote_id, position=(last_position or 0) + 1, **values)
        db.add(item)
        await db.flush()

        await self.recalculate_totals(db, data.quote_id)
        logger.info("Added item %s to quote %s", item.id, data.quote_id)
        return await self.get_item(db, item.id)

    async def update_item(self, db: AsyncSession, item_id: uuid.UUID, data: QuoteItemInput) -> QuoteItem:
        """Re-prices a line from scratch with the given input."""
        item = await self.get_item(db, item_id)
        values = await self.price_line(db, data)
        for field, value in values.items():
            setattr(item, field, value)
        await db.flush()

        await self.recalculate_totals(db, item.quote_id)
        logger.info("Updated quote item %s", item_id)
        return await self.get_item(db, item_id)

    async def delete_item(self, db: AsyncSession, item_id: uuid.UUID) -> None:
        item = await self.get_item(db, item_id)
        quote_id = item.quote_id
        await db.delete(item)
        await db.flush()

        await self.recalculate_totals(db, quote_id)
        logger.info("Deleted quote item %s from quote %s", item_id, quote_id)

    # ------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------

    async def build_document(self, db: AsyncSession, quote: Quote) -> QuoteDocument:
        """Resolves everything the printed quote needs from the catalog."""
        equipment_ids = {item.equipment_id for item in quote.items}

        names: dict[uuid.UUID, dict[int, str]] = {}
        if equipment_ids:
            result = await db.execute(
                select(EquipmentServiceItem)
                .where(EquipmentServiceItem.equipment_id.in_(equipment_ids))
                .order_by(EquipmentServiceItem.position)
            )
            for service_item in result.scalars().all():
                names.setdefault(service_item.equipment_id, {})[service_item.position] = service_item.item_name

        extra_ids = set()
        for item in quote.items:
            notes = parse_notes(item.notes)
            extra_ids.update(notes.selected_additional)
            extra_ids.update(notes.selected_accessories)
        extras_by_id = {}
        if extra_ids:
            result = await db.execute(select(EquipmentAdditional).where(EquipmentAdditional.id.in_(extra_ids)))
            extras_by_id = {row.id: row for row in result.scalars().all()}

        client = quote.client
        return QuoteDocument(
            quote_number=quote.quote_number,
            created_at=quote.created_at,
            created_by_name=quote.created_by_name,
            client=DocumentClient(
                company_name=client.company_name,
                contact_person=client.contact_person,
                email=client.email,
                phone=client.phone,
                address=client.address,
                nip=client.nip,
            ),
            lines=[
                build_document_line(item, names.get(item.equipment_id, {}), extras_by_id)
                for item in quote.items
            ],
            total_net=quote.total_net,
            total_gross=quote.total_gross,
            vat_percent=format_number(self.vat_rate * 100),
        )

    async def render_html(self, db: AsyncSession, quote_id: uuid.UUID) -> str:
        quote = await self.get_by_id(db, quote_id)
        return self.documents.render_quote_html(await self.build_document(db, quote))

    async def render_pdf(self, db: AsyncSession, quote_id: uuid.UUID) -> tuple[str, bytes]:
        """
        Returns:
            Tuple of (quote number, PDF bytes)
        """
        quote = await self.get_by_id(db, quote_id)
        document = await self.build_document(db, quote)
        return quote.quote_number, self.documents.render_quote_pdf(document)
