"""
Quote and needs assessment documents (HTML via Jinja2, PDF via WeasyPrint)
Project: PPP Rental (Wynajem sprzętu)

render_quote_html() is a pure function of a QuoteDocument: no clock, no
database, no randomness, so the same document always renders to the same
bytes. It never raises on stored amounts: unparseable values print as 0.
"""

import datetime
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rental_quotes.core.config import settings
from rental_quotes.services.cost_calculators import SERVICE_ITEM_SLOTS
from rental_quotes.services.quote_notes import parse_notes

logger = logging.getLogger(__name__)

# Path to the templates folder
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")

NBSP = "\u00a0"
ZERO = Decimal("0")

POLISH_MONTHS_GENITIVE = (
    "stycznia",
    "lutego",
    "marca",
    "kwietnia",
    "maja",
    "czerwca",
    "lipca",
    "sierpnia",
    "września",
    "października",
    "listopada",
    "grudnia",
)


# Lazy import of weasyprint to avoid startup errors if its native libraries aren't available
def _get_weasyprint():
    """Lazy import of weasyprint to handle missing system libraries gracefully."""
    try:
        from weasyprint import HTML
        return HTML
    except OSError as e:
        raise RuntimeError(
            "WeasyPrint dependencies not found. Install the Pango/GDK-PixBuf "
            "system libraries to enable PDF export."
        ) from e


# ------------------------------------------------------------
# Formatting (Jinja2 filters)
# ------------------------------------------------------------

def safe_decimal(value: Any) -> Decimal:
    """Decimal value of a stored amount; anything unparseable becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not number.is_finite():
        return ZERO
    return number


def _group_thousands(digits: str) -> str:
    # pl-PL only groups numbers with five or more integer digits
    if len(digits) < 5:
        return digits
    groups = []
    while digits:
        groups.append(digits[-3:])
        digits = digits[:-3]
    return NBSP.join(reversed(groups))


def format_currency(value: Any) -> str:
    """
    Formats an amount the pl-PL way: "12 345,60 zł".

    Two decimals (ROUND_HALF_UP), non-breaking space as thousands
    separator and before the currency; invalid amounts give "0,00 zł".
    """
    amount = safe_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer, fraction = f"{abs(amount):.2f}".split(".")
    return f"{sign}{_group_thousands(integer)},{fraction}{NBSP}zł"


def format_number(value: Any, decimals: Optional[int] = None) -> str:
    """
    Formats a quantity with a decimal comma.

    Without `decimals` trailing zeros are dropped (35.30 -> "35,3",
    8.00 -> "8").
    """
    number = safe_decimal(value)
    if decimals is not None:
        text = f"{number.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP):f}"
    else:
        text = f"{number:f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text.replace(".", ",")


def format_rental_period(days: Any) -> str:
    """1 -> "1 dzień", anything else -> "<N> dni"."""
    try:
        count = int(days)
    except (TypeError, ValueError):
        count = 0
    if count == 1:
        return "1 dzień"
    return f"{count} dni"


def _to_local(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(ZoneInfo(settings.numbering_timezone))


def format_long_date(value: Any) -> str:
    """Polish long date: "18 października 2026"."""
    if isinstance(value, datetime.datetime):
        value = _to_local(value).date()
    if not isinstance(value, datetime.date):
        return ""
    return f"{value.day} {POLISH_MONTHS_GENITIVE[value.month - 1]} {value.year}"


def format_short_date(value: Any) -> str:
    """dd.mm.yyyy"""
    if isinstance(value, datetime.datetime):
        value = _to_local(value).date()
    if not isinstance(value, datetime.date):
        return "Nieznana"
    return value.strftime("%d.%m.%Y")


# ------------------------------------------------------------
# Document model
# ------------------------------------------------------------

@dataclass(frozen=True)
class ExtraLine:
    """A selected additional equipment or accessory row of a quote line."""

    name: str
    price: Decimal
    quantity: int

    @property
    def cost(self) -> Decimal:
        return safe_decimal(self.price) * self.quantity


@dataclass(frozen=True)
class ServiceLine:
    name: str
    cost: Decimal


@dataclass(frozen=True)
class FuelDetails:
    calculation_type: str
    consumption: Decimal
    per_day: Decimal
    total_kilometers: Decimal
    total_liters: Decimal
    price_per_liter: Decimal


@dataclass(frozen=True)
class CrewDetails:
    total: Decimal
    distance_km: Decimal
    technicians: int
    rate_per_technician: Decimal
    rate_per_km: Decimal
    trips: Optional[int] = None


@dataclass(frozen=True)
class DocumentLine:
    """One quote item with everything its rows and blocks display."""

    equipment_name: str
    quantity: int
    rental_period_days: int
    price_per_day: Any
    discount_percent: Any
    total_price: Any
    fuel_cost: Any = ZERO
    fuel: Optional[FuelDetails] = None
    installation: Optional[CrewDetails] = None
    disassembly: Optional[CrewDetails] = None
    travel_service: Optional[CrewDetails] = None
    service_items_cost: Any = ZERO
    service_lines: Optional[Sequence[ServiceLine]] = None
    additional_cost: Any = ZERO
    accessories_cost: Any = ZERO
    additional: Sequence[ExtraLine] = field(default_factory=tuple)
    accessories: Sequence[ExtraLine] = field(default_factory=tuple)
    user_notes: str = ""

    @property
    def has_additional_cost(self) -> bool:
        return safe_decimal(self.additional_cost) > 0

    @property
    def has_accessories_cost(self) -> bool:
        return safe_decimal(self.accessories_cost) > 0

    @property
    def has_extras(self) -> bool:
        return self.has_additional_cost or self.has_accessories_cost

    @property
    def extras_total(self) -> Decimal:
        return safe_decimal(self.additional_cost) + safe_decimal(self.accessories_cost)


@dataclass(frozen=True)
class DocumentClient:
    company_name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    nip: Optional[str] = None


@dataclass(frozen=True)
class QuoteDocument:
    """Fully resolved quote, ready to render."""

    quote_number: str
    created_at: datetime.datetime
    created_by_name: Optional[str]
    client: DocumentClient
    lines: Sequence[DocumentLine]
    total_net: Any
    total_gross: Any
    vat_percent: str = "23"


def _crew_details(
    enabled: bool,
    total: Any,
    distance: Any,
    technicians: Any,
    rate_per_technician: Any,
    rate_per_km: Any,
    trips: Any = None,
    with_trips: bool = False,
) -> Optional[CrewDetails]:
    if not enabled:
        return None
    return CrewDetails(
        total=safe_decimal(total),
        distance_km=safe_decimal(distance),
        technicians=technicians if technicians is not None else 1,
        rate_per_technician=(
            safe_decimal(rate_per_technician)
            if rate_per_technician is not None
            else settings.default_service_rate_per_technician
        ),
        rate_per_km=(
            safe_decimal(rate_per_km) if rate_per_km is not None else settings.default_travel_rate_per_km
        ),
        trips=(trips or 1) if with_trips else None,
    )


def _fuel_details(item: Any) -> Optional[FuelDetails]:
    if not item.include_fuel_cost or safe_decimal(item.total_fuel_cost) <= 0:
        return None
    days = safe_decimal(item.rental_period_days)
    if item.calculation_type == "kilometers":
        per_day = safe_decimal(item.kilometers_per_day)
        consumption = safe_decimal(item.fuel_consumption_per_100km)
        total_km = per_day * days
        liters = total_km / 100 * consumption
    else:
        per_day = safe_decimal(item.hours_per_day)
        consumption = safe_decimal(item.fuel_consumption_lh)
        total_km = ZERO
        liters = consumption * per_day * days
    return FuelDetails(
        calculation_type=item.calculation_type,
        consumption=consumption,
        per_day=per_day,
        total_kilometers=total_km,
        total_liters=liters,
        price_per_liter=safe_decimal(item.fuel_price_per_liter),
    )


def _service_lines(item: Any, names_by_position: Mapping[int, str]) -> Optional[list[ServiceLine]]:
    if not item.include_service_items:
        return None
    lines = []
    for slot in range(1, SERVICE_ITEM_SLOTS + 1):
        cost = safe_decimal(getattr(item, f"service_item_{slot}_cost"))
        if cost > 0:
            lines.append(ServiceLine(names_by_position.get(slot, f"Pozycja serwisowa {slot}"), cost))
    return lines


def build_document_line(
    item: Any,
    service_item_names: Optional[Mapping[int, str]] = None,
    extras_by_id: Optional[Mapping[Any, Any]] = None,
) -> DocumentLine:
    """
    Builds the printable view of one stored quote item.

    Args:
        item: QuoteItem with its equipment loaded
        service_item_names: Service item name per position (1-4) of the
            item's equipment
        extras_by_id: EquipmentAdditional rows by id, used to list the
            selections recorded in the item's notes
    """
    notes = parse_notes(item.notes)
    extras_by_id = extras_by_id or {}
    quantity = item.quantity or 0

    def _extras(ids) -> tuple:
        rows = [extras_by_id[i] for i in ids if i in extras_by_id]
        return tuple(ExtraLine(row.name, safe_decimal(row.price), quantity) for row in rows)

    equipment = getattr(item, "equipment", None)
    return DocumentLine(
        equipment_name=equipment.name if equipment is not None else "",
        quantity=quantity,
        rental_period_days=item.rental_period_days,
        price_per_day=item.price_per_day,
        discount_percent=item.discount_percent,
        total_price=item.total_price,
        fuel_cost=item.total_fuel_cost,
        fuel=_fuel_details(item),
        installation=_crew_details(
            item.include_installation_cost,
            item.total_installation_cost,
            item.installation_distance_km,
            item.number_of_technicians,
            item.service_rate_per_technician,
            item.travel_rate_per_km,
        ),
        disassembly=_crew_details(
            item.include_disassembly_cost,
            item.total_disassembly_cost,
            item.disassembly_distance_km,
            item.disassembly_number_of_technicians,
            item.disassembly_service_rate_per_technician,
            item.disassembly_travel_rate_per_km,
        ),
        travel_service=_crew_details(
            item.include_travel_service_cost,
            item.total_travel_service_cost,
            item.travel_service_distance_km,
            item.travel_service_number_of_technicians,
            item.travel_service_service_rate_per_technician,
            item.travel_service_travel_rate_per_km,
            item.travel_service_number_of_trips,
            with_trips=True,
        ),
        service_items_cost=item.total_service_items_cost,
        service_lines=_service_lines(item, service_item_names or {}),
        additional_cost=item.additional_cost,
        accessories_cost=item.accessories_cost,
        additional=_extras(notes.selected_additional),
        accessories=_extras(notes.selected_accessories),
        user_notes=notes.user_notes,
    )


# ------------------------------------------------------------
# Assessment document
# ------------------------------------------------------------

@dataclass(frozen=True)
class AnsweredQuestion:
    question: str
    answer: str


@dataclass(frozen=True)
class AssessmentDocument:
    response_number: str
    created_at: Optional[datetime.datetime]
    client: Optional[DocumentClient]
    categories: Sequence[tuple]


def group_answers(questions: Sequence[Any], responses: Mapping[str, Any]) -> list[tuple]:
    """
    Pairs answers with their questions, grouped by category.

    Questions keep their given order; categories appear in order of first
    question. Blank answers are skipped and so are categories left without
    any answer.
    """
    grouped: "OrderedDict[str, list[AnsweredQuestion]]" = OrderedDict()
    for question in questions:
        answer = responses.get(str(question.id))
        if answer is None:
            continue
        if isinstance(answer, list):
            text = ", ".join(str(part) for part in answer)
        else:
            text = str(answer)
        if not text.strip():
            continue
        grouped.setdefault(question.category, []).append(AnsweredQuestion(question.question, text))
    return list(grouped.items())


# ------------------------------------------------------------
# Renderer
# ------------------------------------------------------------

class DocumentService:
    """
    Renders quotes and needs assessments to HTML (and PDF).

    The caller passes fully built documents; nothing is loaded here.
    """

    def __init__(self, templates_dir: str = TEMPLATES_DIR):
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = format_currency
        self.env.filters["number"] = format_number
        self.env.filters["rental_period"] = format_rental_period
        self.env.filters["long_date"] = format_long_date
        self.env.filters["short_date"] = format_short_date

    def render_quote_html(self, document: QuoteDocument) -> str:
        """
        Renders a quote.

        Args:
            document: Fully resolved quote

        Returns:
            str: complete HTML page
        """
        template = self.env.get_template("quote_template.html")
        return template.render(
            doc=document,
            company_name=settings.company_name,
            company_footer=settings.company_footer,
        )

    def render_quote_pdf(self, document: QuoteDocument) -> bytes:
        """Renders a quote to PDF with WeasyPrint."""
        HTML = _get_weasyprint()
        html_out = self.render_quote_html(document)
        pdf_bytes = HTML(string=html_out, base_url=TEMPLATES_DIR).write_pdf()
        logger.info("Rendered PDF for quote %s (%d bytes)", document.quote_number, len(pdf_bytes))
        return pdf_bytes

    def render_assessment_html(self, document: AssessmentDocument) -> str:
        """Renders a needs assessment response."""
        template = self.env.get_template("assessment_template.html")
        return template.render(
            doc=document,
            company_name=settings.company_name,
            company_footer=settings.company_footer,
        )
