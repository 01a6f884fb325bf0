"""
Tests for sequential numbering and quote item notes.
"""

import datetime
import json
import re
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from rental_quotes.core.exceptions import QuoteNumberCollisionError
from rental_quotes.models import Client, NeedsAssessmentResponse, Quote
from rental_quotes.services.numbering_service import (
    NumberingService,
    format_sequential_number,
    guest_quote_number,
)
from rental_quotes.services.quote_notes import (
    PlainNotes,
    StructuredNotes,
    build_notes,
    parse_notes,
)

UTC = datetime.timezone.utc


# ============================================================
# Number format
# ============================================================


class TestNumberFormat:
    """Tests for SEQ/MM.YYYY and guest numbers."""

    def test_sequence_is_zero_padded(self):
        """Test the sequence is padded to two digits."""
        assert format_sequential_number(3, datetime.date(2026, 10, 18)) == "03/10.2026"
        assert format_sequential_number(1, datetime.date(2026, 1, 2)) == "01/01.2026"

    def test_sequence_above_99(self):
        """Test sequences wider than two digits are kept whole."""
        assert format_sequential_number(120, datetime.date(2026, 3, 5)) == "120/03.2026"

    def test_guest_number(self):
        """Test GUE-YYYY-NNNNNN."""
        number = guest_quote_number(datetime.datetime(2026, 5, 1, 12, 0, tzinfo=UTC))
        assert re.fullmatch(r"GUE-2026-\d{6}", number)

    def test_local_day_follows_reference_time_zone(self):
        """Test 22:30 UTC on 17 October is already 18 October in Warsaw."""
        service = NumberingService(timezone="Europe/Warsaw")
        moment = datetime.datetime(2026, 10, 17, 22, 30, tzinfo=UTC)
        assert service.local_date(moment) == datetime.date(2026, 10, 18)


# ============================================================
# Numbering against the database
# ============================================================


async def _store_quote(db, client, number, day):
    db.add(
        Quote(
            quote_number=number,
            numbering_date=day,
            client_id=client.id,
            status="draft",
            total_net=Decimal("0.00"),
            total_gross=Decimal("0.00"),
        )
    )
    await db.commit()


class TestNextNumber:
    """Tests for the daily counter."""

    @pytest.fixture
    async def numbered_client(self, db):
        client = Client(company_name="Numeracja S.A.")
        db.add(client)
        await db.commit()
        return client

    async def test_first_number_of_the_day(self, db):
        """Test the first quote of a day gets 01."""
        service = NumberingService(timezone="Europe/Warsaw")
        moment = datetime.datetime(2026, 10, 18, 9, 0, tzinfo=UTC)

        assigned = await service.next_number(db, Quote, moment)

        assert assigned.number == "01/10.2026"
        assert assigned.numbering_date == datetime.date(2026, 10, 18)
        assert assigned.created_at == moment

    async def test_counter_increments_within_the_day(self, db, numbered_client):
        """Test two quotes on the same day get 01 and 02."""
        service = NumberingService(timezone="Europe/Warsaw")
        moment = datetime.datetime(2026, 10, 18, 9, 0, tzinfo=UTC)

        first = await service.next_number(db, Quote, moment)
        await _store_quote(db, numbered_client, first.number, first.numbering_date)
        second = await service.next_number(db, Quote, moment + datetime.timedelta(hours=1))

        assert second.number == "02/10.2026"

    async def test_counter_resets_next_day(self, db, numbered_client):
        """Test the sequence restarts at 01 on a new day."""
        service = NumberingService(timezone="Europe/Warsaw")
        await _store_quote(db, numbered_client, "01/10.2026", datetime.date(2026, 10, 18))
        await _store_quote(db, numbered_client, "02/10.2026", datetime.date(2026, 10, 18))

        assigned = await service.next_number(db, Quote, datetime.datetime(2026, 10, 19, 8, 0, tzinfo=UTC))

        assert assigned.number == "01/10.2026"
        assert assigned.numbering_date == datetime.date(2026, 10, 19)

    async def test_streams_are_independent(self, db, numbered_client):
        """Test assessment numbers do not count quotes."""
        service = NumberingService(timezone="Europe/Warsaw")
        await _store_quote(db, numbered_client, "01/10.2026", datetime.date(2026, 10, 18))

        assigned = await service.next_number(
            db, NeedsAssessmentResponse, datetime.datetime(2026, 10, 18, 10, 0, tzinfo=UTC)
        )

        assert assigned.number == "01/10.2026"

    async def test_gap_after_deletion_continues_from_highest(self, db, numbered_client):
        """Test a deleted 01 is not reused and 02 is followed by 03."""
        service = NumberingService(timezone="Europe/Warsaw")
        await _store_quote(db, numbered_client, "02/10.2026", datetime.date(2026, 10, 18))

        assigned = await service.next_number(db, Quote, datetime.datetime(2026, 10, 18, 11, 0, tzinfo=UTC))

        assert assigned.number == "03/10.2026"

    async def test_guest_numbers_are_ignored(self, db, numbered_client):
        """Test a guest quote on the same day does not move the sequence."""
        service = NumberingService(timezone="Europe/Warsaw")
        await _store_quote(db, numbered_client, "01/10.2026", datetime.date(2026, 10, 18))
        await _store_quote(db, numbered_client, "GUE-2026-123456", datetime.date(2026, 10, 18))

        assigned = await service.next_number(db, Quote, datetime.datetime(2026, 10, 18, 11, 0, tzinfo=UTC))

        assert assigned.number == "02/10.2026"

    async def test_taken_candidate_moves_forward(self, db, numbered_client):
        """Test every retry tries the next sequence number."""
        service = NumberingService(timezone="Europe/Warsaw", max_attempts=3)
        moment = datetime.datetime(2026, 10, 18, 11, 0, tzinfo=UTC)

        with patch.object(service, "is_taken", AsyncMock(side_effect=[True, False])) as is_taken:
            assigned = await service.next_number(db, Quote, moment)

        assert assigned.number == "02/10.2026"
        assert [c.args[2] for c in is_taken.call_args_list] == ["01/10.2026", "02/10.2026"]

    async def test_taken_number_raises_collision(self, db, numbered_client):
        """Test a number that stays taken is reported after every attempt."""
        service = NumberingService(timezone="Europe/Warsaw", max_attempts=2)

        with patch.object(service, "is_taken", AsyncMock(return_value=True)) as is_taken:
            with pytest.raises(QuoteNumberCollisionError) as exc_info:
                await service.next_number(db, Quote, datetime.datetime(2026, 10, 18, 11, 0, tzinfo=UTC))

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "QUOTE_NUMBER_COLLISION"
        assert exc_info.value.attempts == 2
        assert [c.args[2] for c in is_taken.call_args_list] == ["01/10.2026", "02/10.2026"]


# ============================================================
# Notes
# ============================================================


class TestQuoteNotes:
    """Tests for plain and structured item notes."""

    def test_empty_notes(self):
        """Test None parses to empty plain notes."""
        notes = parse_notes(None)
        assert isinstance(notes, PlainNotes)
        assert notes.user_notes == ""
        assert notes.selected_additional == ()

    def test_plain_text(self):
        """Test free text stays plain."""
        notes = parse_notes("Dostawa na budowę")
        assert isinstance(notes, PlainNotes)
        assert notes.user_notes == "Dostawa na budowę"

    def test_structured_notes(self):
        """Test the JSON form exposes selections and user notes."""
        additional_id, accessory_id = uuid.uuid4(), uuid.uuid4()
        raw = json.dumps(
            {
                "selectedAdditional": [str(additional_id)],
                "selectedAccessories": [str(accessory_id)],
                "userNotes": "Z paliwem",
            }
        )
        notes = parse_notes(raw)
        assert isinstance(notes, StructuredNotes)
        assert notes.selected_additional == (additional_id,)
        assert notes.selected_accessories == (accessory_id,)
        assert notes.user_notes == "Z paliwem"

    def test_other_json_is_plain(self):
        """Test JSON without the selection marker first is plain text."""
        raw = json.dumps({"userNotes": "x", "selectedAdditional": []})
        notes = parse_notes(raw)
        assert isinstance(notes, PlainNotes)
        assert notes.user_notes == raw

    def test_invalid_ids_are_skipped(self):
        """Test unparseable selection ids are ignored."""
        raw = json.dumps({"selectedAdditional": ["not-a-uuid"], "selectedAccessories": [], "userNotes": ""})
        assert parse_notes(raw).selected_additional == ()

    def test_build_without_selection_is_plain(self):
        """Test notes without selections are stored as plain text or NULL."""
        assert build_notes("Uwagi").serialize() == "Uwagi"
        assert build_notes(None).serialize() is None

    def test_build_with_selection_serializes_marker_first(self):
        """Test the stored JSON starts with selectedAdditional."""
        accessory_id = uuid.uuid4()
        stored = build_notes("Uwagi", (), [accessory_id]).serialize()
        assert stored.startswith('{"selectedAdditional": []')
        assert parse_notes(stored).selected_accessories == (accessory_id,)
        assert parse_notes(stored).user_notes == "Uwagi"
