"""
Unit tests for ticket and note identifiers
"""
from datetime import datetime, timezone

import pytest

from quicket.tickets.domain import (
    TICKET_ID_PATTERN,
    TicketIdGenerator,
    generate_note_id,
    generate_ticket_id,
)

AT = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestGenerateTicketId:

    @pytest.mark.parametrize("sequence", [0, 1, 7, 9999, 10000, 10007, 123456789, -1])
    def test_format_and_suffix(self, sequence):
        ticket_id = generate_ticket_id(sequence, at=AT)
        assert TICKET_ID_PATTERN.match(ticket_id)
        assert int(ticket_id.rsplit("-", 1)[1]) == sequence % 10000

    def test_embeds_generation_date(self):
        assert generate_ticket_id(7, at=AT) == "TCK-20240115-0007"

    def test_custom_prefix(self):
        assert generate_ticket_id(42, prefix="IT", at=AT) == "IT-20240115-0042"

    def test_defaults_to_now(self):
        assert TICKET_ID_PATTERN.match(generate_ticket_id(1))


@pytest.mark.unit
class TestTicketIdGenerator:

    def test_starts_after_existing_collection(self):
        generator = TicketIdGenerator.for_collection_size(3)
        assert generator.next_sequence == 4
        assert generator.next_id(AT) == "TCK-20240115-0004"

    def test_sequence_is_monotonic(self):
        generator = TicketIdGenerator()
        ids = [generator.next_id(AT) for _ in range(3)]
        assert ids == ["TCK-20240115-0001", "TCK-20240115-0002", "TCK-20240115-0003"]

    def test_collection_size_wraps(self):
        generator = TicketIdGenerator.for_collection_size(19999)
        assert generator.next_id(AT).endswith("-0000")


@pytest.mark.unit
class TestGenerateNoteId:

    def test_epoch_millis(self):
        assert generate_note_id([], AT) == f"N-{int(AT.timestamp() * 1000)}"

    def test_bumped_until_unique(self):
        millis = int(AT.timestamp() * 1000)
        taken = [f"N-{millis}", f"N-{millis + 1}"]
        assert generate_note_id(taken, AT) == f"N-{millis + 2}"
