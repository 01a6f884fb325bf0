"""
Service tests for quotes, the public API workflow, equipment and needs
assessments, against a SQLite database.
"""

import re
import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from rental_quotes.core.config import settings
from rental_quotes.core.deps import Caller
from rental_quotes.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NoPricingAvailableError,
    NotFoundError,
    QuoteNumberCollisionError,
)
from rental_quotes.models import (
    Client,
    Equipment,
    EquipmentAdditional,
    EquipmentCategory,
    EquipmentPricing,
    EquipmentServiceItem,
    PricingSchema,
    Quote,
    QuoteItem,
)
from rental_quotes.schemas.assessment import NeedsAssessmentResponseCreate
from rental_quotes.schemas.client import ClientCreate
from rental_quotes.schemas.equipment import (
    EquipmentCategoryCreate,
    EquipmentCreate,
    EquipmentServiceItemCreate,
    EquipmentUpdate,
)
from rental_quotes.schemas.public import PublicQuoteCreate, PublicQuoteLine
from rental_quotes.schemas.quote import (
    GuestQuoteCreate,
    QuoteCreate,
    QuoteItemCreate,
    QuoteItemInput,
    QuoteUpdate,
)
from rental_quotes.services.assessment_service import AssessmentService
from rental_quotes.services.equipment_service import EquipmentService
from rental_quotes.services.numbering_service import AssignedNumber
from rental_quotes.services.public_service import PublicService
from rental_quotes.services.quote_service import QuoteService, total_pages

SEQUENTIAL_NUMBER = re.compile(r"\d{2,}/\d{2}\.\d{4}")

EMPLOYEE = Caller(user_id="employee-1", role="employee", display_name="Piotr Pracownik")


async def count_rows(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.fixture
def quotes():
    return QuoteService()


# ============================================================
# Quote creation
# ============================================================


class TestCreateQuote:
    """Tests for staff quote creation."""

    async def test_generator_quote_with_fuel(self, db, quotes, existing_client, generator):
        """Test line pricing, totals, number and creator snapshot."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    quantity=2,
                    rental_period_days=10,
                    include_fuel_cost=True,
                    calculation_type="motohours",
                    fuel_consumption_lh=Decimal("35.3"),
                    hours_per_day=Decimal("8"),
                    fuel_price_per_liter=Decimal("6.50"),
                )
            ],
        )

        quote = await quotes.create(db, data, EMPLOYEE)

        assert SEQUENTIAL_NUMBER.fullmatch(quote.quote_number)
        assert quote.status == "draft"
        assert quote.is_guest_quote is False
        assert quote.created_by_id == "employee-1"
        assert quote.created_by_name == "Piotr Pracownik"
        assert len(quote.items) == 1
        item = quote.items[0]
        assert item.position == 1
        assert item.price_per_day == Decimal("350.00")
        assert item.total_fuel_cost == Decimal("18356.00")
        assert item.total_price == Decimal("25356.00")
        assert quote.total_net == Decimal("25356.00")
        assert quote.total_gross == Decimal("31187.88")

    async def test_quote_without_items(self, db, quotes, existing_client):
        """Test an empty quote totals zero."""
        quote = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        assert quote.items == []
        assert quote.total_net == Decimal("0.00")
        assert quote.total_gross == Decimal("0.00")

    async def test_hourly_alias_is_stored_as_motohours(self, db, quotes, existing_client, generator):
        """Test the legacy "hourly" mode is priced and stored as motohours."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    rental_period_days=1,
                    include_fuel_cost=True,
                    calculation_type="hourly",
                    fuel_consumption_lh=Decimal("10"),
                    hours_per_day=Decimal("2"),
                    fuel_price_per_liter=Decimal("5"),
                )
            ],
        )
        quote = await quotes.create(db, data, EMPLOYEE)
        assert quote.items[0].calculation_type == "motohours"
        assert quote.items[0].total_fuel_cost == Decimal("100.00")

    async def test_numbers_increment(self, db, quotes, existing_client):
        """Test two quotes on the same day get consecutive numbers."""
        first = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        second = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)

        first_seq = int(first.quote_number.split("/")[0])
        second_seq = int(second.quote_number.split("/")[0])
        assert second_seq == first_seq + 1

    async def test_number_after_same_day_deletion(self, db, quotes, existing_client):
        """Test a quote created after deleting an earlier one gets a fresh number."""
        first = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        second = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        await quotes.delete(db, first.id)

        third = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)

        second_seq = int(second.quote_number.split("/")[0])
        assert int(third.quote_number.split("/")[0]) == second_seq + 1
        assert await count_rows(db, Quote) == 2

    async def test_guest_quote_keeps_staff_sequence(self, db, quotes, existing_client, generator):
        """Test a guest quote between two staff quotes does not skip a number."""
        first = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        await quotes.create_guest(
            db,
            GuestQuoteCreate(
                client=ClientCreate(company_name="Gość Sp. z o.o."),
                items=[QuoteItemInput(equipment_id=generator.id, rental_period_days=1)],
            ),
        )
        second = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)

        assert int(second.quote_number.split("/")[0]) == int(first.quote_number.split("/")[0]) + 1

    async def test_unpriced_line_persists_nothing(self, db, quotes, existing_client, generator, unpriced_equipment):
        """Test one line without a tier rejects the whole quote."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(equipment_id=generator.id, rental_period_days=5),
                QuoteItemInput(equipment_id=unpriced_equipment.id, rental_period_days=5),
            ],
        )

        with pytest.raises(NoPricingAvailableError) as exc_info:
            await quotes.create(db, data, EMPLOYEE)

        assert exc_info.value.rental_period_days == 5
        assert await count_rows(db, Quote) == 0
        assert await count_rows(db, QuoteItem) == 0

    async def test_zero_day_period_persists_nothing(self, db, quotes, existing_client, generator):
        """Test a zero-day line is rejected before anything is stored."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[QuoteItemInput(equipment_id=generator.id, rental_period_days=0)],
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            await quotes.create(db, data, EMPLOYEE)

        assert exc_info.value.error_code == "INVALID_RENTAL_PERIOD"
        assert await count_rows(db, Quote) == 0

    async def test_missing_fuel_parameter(self, db, quotes, existing_client, generator):
        """Test an enabled component with missing inputs is rejected."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    rental_period_days=3,
                    include_fuel_cost=True,
                    fuel_consumption_lh=Decimal("10"),
                    hours_per_day=Decimal("8"),
                )
            ],
        )
        with pytest.raises(BusinessValidationError) as exc_info:
            await quotes.create(db, data, EMPLOYEE)
        assert exc_info.value.error_code == "MISSING_COST_PARAMETER"

    async def test_unknown_client(self, db, quotes):
        """Test a missing client is reported as not found."""
        with pytest.raises(NotFoundError):
            await quotes.create(db, QuoteCreate(client_id=uuid.uuid4()), EMPLOYEE)

    async def test_crew_rates_snapshot(self, db, quotes, existing_client, generator):
        """Test the applied default rates are stored on the item."""
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    rental_period_days=2,
                    include_installation_cost=True,
                    installation_distance_km=Decimal("50"),
                    number_of_technicians=1,
                )
            ],
        )
        quote = await quotes.create(db, data, EMPLOYEE)
        item = quote.items[0]
        assert item.total_installation_cost == Decimal("207.50")
        assert item.service_rate_per_technician == Decimal("150.00")
        assert item.travel_rate_per_km == Decimal("1.15")
        assert item.total_price == Decimal("907.50")

    async def test_duplicate_number_on_insert_is_a_collision(self, db, quotes, existing_client):
        """Test the unique number constraint surfaces as a collision."""
        first = await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        await db.commit()
        duplicate = AssignedNumber(
            number=first.quote_number,
            numbering_date=first.numbering_date,
            created_at=first.created_at,
        )

        with pytest.raises(QuoteNumberCollisionError):
            await quotes.store_quote(db, [], duplicate, client_id=existing_client.id, status="draft")


# ============================================================
# Extras
# ============================================================


class TestExtras:
    """Tests for selected additional equipment and accessories."""

    async def test_accessory_cost_and_notes(self, db, quotes, existing_client, generator, generator_extras):
        """Test accessories are priced per unit and recorded in the notes."""
        additional, accessory = generator_extras
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    quantity=3,
                    rental_period_days=1,
                    notes="Dostawa rano",
                    selected_additional=[additional.id],
                    selected_accessories=[accessory.id],
                )
            ],
        )
        quote = await quotes.create(db, data, EMPLOYEE)
        item = quote.items[0]

        assert item.additional_cost == Decimal("360.00")
        assert item.accessories_cost == Decimal("150.00")
        assert item.total_price == Decimal("1560.00")
        assert item.notes.startswith('{"selectedAdditional"')

        html = await quotes.render_html(db, quote.id)
        assert "Kabel 25m" in html
        assert "Akcesoria:" in html
        assert "Dostawa rano" in html

    async def test_wrong_type_rejected(self, db, quotes, existing_client, generator, generator_extras):
        """Test an accessory cannot be selected as additional equipment."""
        _, accessory = generator_extras
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=generator.id,
                    rental_period_days=1,
                    selected_additional=[accessory.id],
                )
            ],
        )
        with pytest.raises(BusinessValidationError) as exc_info:
            await quotes.create(db, data, EMPLOYEE)
        assert exc_info.value.error_code == "INVALID_ADDITIONAL_TYPE"

    async def test_extra_of_other_equipment_rejected(
        self, db, quotes, existing_client, generator_extras, unpriced_equipment, generator
    ):
        """Test extras must belong to the line's equipment."""
        db.add(
            EquipmentPricing(
                equipment_id=unpriced_equipment.id,
                period_start=1,
                period_end=None,
                price_per_day=Decimal("40.00"),
            )
        )
        await db.commit()
        additional, _ = generator_extras
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[
                QuoteItemInput(
                    equipment_id=unpriced_equipment.id,
                    rental_period_days=1,
                    selected_additional=[additional.id],
                )
            ],
        )
        with pytest.raises(NotFoundError):
            await quotes.create(db, data, EMPLOYEE)


# ============================================================
# Item editing
# ============================================================


class TestQuoteItems:
    """Tests for adding, editing and removing lines."""

    @pytest.fixture
    async def quote(self, db, quotes, existing_client, generator):
        data = QuoteCreate(
            client_id=existing_client.id,
            items=[QuoteItemInput(equipment_id=generator.id, rental_period_days=5)],
        )
        return await quotes.create(db, data, EMPLOYEE)

    async def test_add_item_recomputes_totals(self, db, quotes, quote, generator):
        """Test adding a line appends it and re-sums the quote."""
        item = await quotes.add_item(
            db,
            QuoteItemCreate(quote_id=quote.id, equipment_id=generator.id, rental_period_days=30),
        )
        assert item.position == 2
        assert item.total_price == Decimal("7650.00")

        reloaded = await quotes.get_by_id(db, quote.id)
        assert reloaded.total_net == Decimal("9400.00")
        assert reloaded.total_gross == Decimal("11562.00")

    async def test_update_item_reprices(self, db, quotes, quote, generator):
        """Test editing a line prices it again from the catalog."""
        item_id = quote.items[0].id
        item = await quotes.update_item(
            db,
            item_id,
            QuoteItemInput(equipment_id=generator.id, quantity=2, rental_period_days=5),
        )
        assert item.total_price == Decimal("3500.00")
        reloaded = await quotes.get_by_id(db, quote.id)
        assert reloaded.total_net == Decimal("3500.00")

    async def test_delete_last_item_zeroes_totals(self, db, quotes, quote):
        """Test removing every line brings the totals back to zero."""
        await quotes.delete_item(db, quote.items[0].id)
        reloaded = await quotes.get_by_id(db, quote.id)
        assert reloaded.items == []
        assert reloaded.total_net == Decimal("0.00")
        assert reloaded.total_gross == Decimal("0.00")

    async def test_update_header(self, db, quotes, quote):
        """Test status and notes can be changed without touching totals."""
        updated = await quotes.update(db, quote.id, QuoteUpdate(status="approved", notes="OK"))
        assert updated.status == "approved"
        assert updated.notes == "OK"
        assert updated.total_net == Decimal("1750.00")

    async def test_delete_quote_removes_items(self, db, quotes, quote):
        """Test deleting a quote deletes its items."""
        await quotes.delete(db, quote.id)
        assert await count_rows(db, Quote) == 0
        assert await count_rows(db, QuoteItem) == 0

    async def test_list_is_paginated(self, db, quotes, quote, existing_client):
        """Test the list returns a page and the total count."""
        await quotes.create(db, QuoteCreate(client_id=existing_client.id), EMPLOYEE)
        page, total = await quotes.get_all(db, page=1, per_page=1)
        assert total == 2
        assert len(page) == 1
        assert total_pages(total, 1) == 2


# ============================================================
# Guest and public quotes
# ============================================================


class TestGuestAndPublicQuotes:
    """Tests for quotes created without a logged-in user."""

    async def test_guest_quote(self, db, quotes, generator):
        """Test guest quotes get a GUE number and a new client."""
        data = GuestQuoteCreate(
            client=ClientCreate(company_name="Gość Sp. z o.o."),
            guest_email="gosc@example.com",
            items=[QuoteItemInput(equipment_id=generator.id, rental_period_days=1)],
        )
        quote = await quotes.create_guest(db, data)

        assert re.fullmatch(r"GUE-\d{4}-\d{6}", quote.quote_number)
        assert quote.is_guest_quote is True
        assert quote.client.company_name == "Gość Sp. z o.o."
        assert quote.created_by_id is None

    async def test_public_quote_reuses_client(self, db, existing_client, generator):
        """Test the public API finds the client by exact company name."""
        data = PublicQuoteCreate(
            client=ClientCreate(company_name="Budimex Sp. z o.o.", contact_person="Ktoś Inny"),
            equipment=[PublicQuoteLine(equipment_id=generator.id, quantity=1, rental_period_days=5)],
        )
        quote = await PublicService().create_quote(db, data)

        assert quote.client_id == existing_client.id
        assert quote.status == "draft"
        assert quote.total_net == Decimal("1750.00")
        assert quote.client.contact_person == "Ewa Nowak"
        assert await count_rows(db, Client) == 1

    async def test_public_quote_creates_client(self, db, generator):
        """Test an unknown company becomes a new client."""
        data = PublicQuoteCreate(
            client=ClientCreate(company_name="Nowa Firma"),
            equipment=[PublicQuoteLine(equipment_id=generator.id, rental_period_days=2)],
        )
        quote = await PublicService().create_quote(db, data)
        assert quote.client.company_name == "Nowa Firma"
        assert SEQUENTIAL_NUMBER.fullmatch(quote.quote_number)

    async def test_public_quote_uses_configured_schema(self, db, generator):
        """Test public quotes get the configured default pricing schema."""
        schema = PricingSchema(name="Standard")
        db.add(schema)
        await db.commit()
        configured = settings.model_copy(update={"default_pricing_schema_id": schema.id})
        data = PublicQuoteCreate(
            client=ClientCreate(company_name="Nowa Firma"),
            equipment=[PublicQuoteLine(equipment_id=generator.id, rental_period_days=2)],
        )

        with patch("rental_quotes.services.public_service.settings", configured):
            quote = await PublicService().create_quote(db, data)

        assert quote.pricing_schema_id == schema.id

    async def test_public_quote_rejected_without_pricing(self, db, generator, unpriced_equipment):
        """Test one unpriced line rejects the request before the client is stored."""
        data = PublicQuoteCreate(
            client=ClientCreate(company_name="Nowa Firma"),
            equipment=[
                PublicQuoteLine(equipment_id=generator.id, rental_period_days=2),
                PublicQuoteLine(equipment_id=unpriced_equipment.id, rental_period_days=2),
            ],
        )
        with pytest.raises(NoPricingAvailableError):
            await PublicService().create_quote(db, data)
        assert await count_rows(db, Client) == 0
        assert await count_rows(db, Quote) == 0

    async def test_public_equipment_list(self, db, generator, unpriced_equipment):
        """Test only active equipment in stock is listed with its tiers."""
        unpriced_equipment.available_quantity = 0
        await db.commit()

        listed = await PublicService().list_equipment(db)

        assert [e.name for e in listed] == ["Agregat 100 kVA"]
        assert listed[0].category == "Agregaty prądotwórcze"
        assert [t.period_start for t in listed[0].pricing] == [1, 30]


# ============================================================
# Equipment catalog
# ============================================================


class TestEquipmentService:
    """Tests for the catalog rules."""

    async def test_create_without_pricing_adds_default_tier(self, db, category):
        """Test new equipment without tiers gets 1+ days at 100 zł."""
        equipment, message = await EquipmentService().create(
            db,
            EquipmentCreate(name="Nagrzewnica", model="NG-30", category_id=category.id),
        )
        assert len(equipment.pricing) == 1
        assert equipment.pricing[0].period_start == 1
        assert equipment.pricing[0].period_end is None
        assert equipment.pricing[0].price_per_day == Decimal("100.00")
        assert "100 zł/dzień" in message

    async def test_available_cannot_exceed_quantity(self, db, generator):
        """Test stock updates keep available <= quantity."""
        with pytest.raises(BusinessValidationError):
            await EquipmentService().update(db, generator.id, EquipmentUpdate(available_quantity=10))

    async def test_placeholder_additional(self, db, unpriced_equipment):
        """Test equipment without extras gets a zero-priced placeholder."""
        rows = await EquipmentService().get_additional(db, unpriced_equipment.id)
        assert len(rows) == 1
        assert rows[0].name == "Dodatkowe wyposażenie 1"
        assert rows[0].price == Decimal("0.00")

    async def test_quoted_equipment_cannot_be_deleted(self, db, quotes, existing_client, generator):
        """Test permanent deletion is refused once the equipment is quoted."""
        await quotes.create(
            db,
            QuoteCreate(
                client_id=existing_client.id,
                items=[QuoteItemInput(equipment_id=generator.id, rental_period_days=1)],
            ),
            EMPLOYEE,
        )
        with pytest.raises(ConflictError) as exc_info:
            await EquipmentService().delete_permanently(db, generator.id)
        assert exc_info.value.error_code == "EQUIPMENT_IN_USE"

    async def test_unquoted_equipment_deleted_with_its_rows(self, db, unpriced_equipment):
        """Test permanent deletion removes extras and service items too."""
        service = EquipmentService()
        await service.get_additional(db, unpriced_equipment.id)
        await service.create_service_item(
            db,
            unpriced_equipment.id,
            EquipmentServiceItemCreate(item_name="Przegląd", price=Decimal("80.00")),
        )

        await service.delete_permanently(db, unpriced_equipment.id)

        assert await count_rows(db, Equipment) == 0
        assert await count_rows(db, EquipmentAdditional) == 0
        assert await count_rows(db, EquipmentServiceItem) == 0

    async def test_empty_category_deleted(self, db):
        """Test a category without equipment can be deleted."""
        service = EquipmentService()
        category = await service.create_category(db, EquipmentCategoryCreate(name="Oświetlenie"))

        await service.delete_category(db, category.id)

        assert await count_rows(db, EquipmentCategory) == 0

    async def test_resolve_pricing(self, db, generator):
        """Test the resolve operation uses the quote pricing rule."""
        tier = await EquipmentService().resolve_pricing(db, generator.id, 45)
        assert tier.price_per_day == Decimal("300.00")
        assert tier.discount_percent == Decimal("15.00")


# ============================================================
# Needs assessments
# ============================================================


class TestAssessmentService:
    """Tests for needs assessment responses."""

    async def test_responses_are_numbered(self, db, questions):
        """Test responses get consecutive daily numbers."""
        service = AssessmentService()
        first = await service.create_response(
            db,
            NeedsAssessmentResponseCreate(responses={str(questions[0].id): "100 kW"}),
            user_id="employee-1",
        )
        second = await service.create_response(db, NeedsAssessmentResponseCreate())

        assert SEQUENTIAL_NUMBER.fullmatch(first.response_number)
        assert int(second.response_number.split("/")[0]) == int(first.response_number.split("/")[0]) + 1
        assert first.user_id == "employee-1"
        assert second.user_id is None

    async def test_number_after_same_day_deletion(self, db):
        """Test a response created after deleting an earlier one gets a fresh number."""
        service = AssessmentService()
        first = await service.create_response(db, NeedsAssessmentResponseCreate())
        second = await service.create_response(db, NeedsAssessmentResponseCreate())
        await service.delete_response(db, first.id)

        third = await service.create_response(db, NeedsAssessmentResponseCreate())

        assert int(third.response_number.split("/")[0]) == int(second.response_number.split("/")[0]) + 1

    async def test_active_questions_only(self, db, questions):
        """Test inactive questions are not offered."""
        active = await AssessmentService().get_questions(db)
        assert "Pytanie archiwalne" not in [q.question for q in active]
        assert len(active) == 2

    async def test_render_with_client_block(self, db, questions):
        """Test the printout shows the client and answered questions."""
        service = AssessmentService()
        response = await service.create_response(
            db,
            NeedsAssessmentResponseCreate(
                client_company_name="Budimex Sp. z o.o.",
                responses={str(questions[1].id): "Tak"},
            ),
        )
        html = await service.render_html(db, response.id)
        assert "Budimex Sp. z o.o." in html
        assert "Czy potrzebny jest transport?" in html
        assert "Jaka moc jest potrzebna?" not in html
