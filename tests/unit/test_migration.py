"""
Unit tests for ticket record migration
"""
from datetime import datetime, timedelta, timezone

import pytest

from quicket.tickets.domain import (
    TICKET_ID_PATTERN,
    Ticket,
    TicketIdGenerator,
    TicketMigrator,
    migrate,
    migrate_with_report,
    normalize_config,
)

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def canonical_record(**overrides):
    record = {
        "id": "TCK-20240115-0001",
        "title": "VPN down",
        "description": "Cannot connect",
        "name": "Sam",
        "contactType": "phone",
        "contactValue": "555-123-4567",
        "category": "Networking",
        "team": "Networking",
        "status": "In Progress",
        "priority": "P2",
        "createdAt": "2024-01-15T10:00:00Z",
        "updatedAt": "2024-01-15T11:00:00Z",
        "notes": [{"id": "N-1", "text": "Looking", "createdAt": "2024-01-15T10:30:00Z"}],
    }
    record.update(overrides)
    return record


@pytest.fixture
def migrator(clock):
    return TicketMigrator(id_generator=TicketIdGenerator(), clock=clock)


@pytest.mark.unit
class TestMigrate:

    def test_legacy_record_gets_defaults(self):
        ticket = migrate({"id": "L-1", "title": "Legacy", "createdAt": T0.isoformat()})
        assert ticket.id == "L-1"
        assert ticket.priority == "P3"
        assert ticket.team == "Unassigned"
        assert ticket.contact_type == "email"
        assert ticket.status == "Open"
        assert ticket.category == "Other"
        assert ticket.notes == []
        assert ticket.created_at == T0

    def test_canonical_record_unchanged(self):
        result = migrate_with_report(canonical_record())
        assert not result.was_defaulted
        assert result.ticket.to_record() == canonical_record()

    def test_idempotent(self):
        once = migrate({"title": "x", "priority": "urgent", "status": "closed", "createdAt": T0.isoformat()})
        assert migrate(once) == once

    def test_missing_id_is_generated(self, migrator):
        ticket = migrator.migrate({"title": "No id"})
        assert TICKET_ID_PATTERN.match(ticket.id)
        assert ticket.id == "TCK-20240115-0001"

    @pytest.mark.parametrize("raw_id", [None, "", "   ", 12])
    def test_invalid_ids_are_generated(self, migrator, raw_id):
        assert migrator.migrate({"id": raw_id}).id.startswith("TCK-")

    @pytest.mark.parametrize("raw, expected", [
        ("in_progress", "In Progress"),
        ("IN PROGRESS", "In Progress"),
        ("on-hold", "On Hold"),
        ("resolved", "Resolved"),
        ("Closed", "Closed"),
        ("escalated", "Open"),
        (None, "Open"),
    ])
    def test_status_normalization(self, raw, expected):
        assert migrate(canonical_record(status=raw)).status == expected

    @pytest.mark.parametrize("raw", ["P5", "p1", 1, None])
    def test_invalid_priority_becomes_p3(self, raw):
        assert migrate(canonical_record(priority=raw)).priority == "P3"

    def test_invalid_contact_type_becomes_email(self):
        assert migrate(canonical_record(contactType="fax")).contact_type == "email"

    def test_non_string_text_fields_become_empty(self):
        ticket = migrate(canonical_record(title=42, description=None, name=["x"]))
        assert (ticket.title, ticket.description, ticket.name) == ("", "", "")

    def test_blank_team_becomes_unassigned(self):
        assert migrate(canonical_record(team="  ")).team == "Unassigned"

    def test_snake_case_keys_accepted(self):
        record = canonical_record()
        for camel, snake in (("contactType", "contact_type"), ("contactValue", "contact_value"),
                             ("createdAt", "created_at"), ("updatedAt", "updated_at")):
            record[snake] = record.pop(camel)
        ticket = migrate(record)
        assert ticket.contact_type == "phone"
        assert ticket.created_at == T0

    def test_missing_timestamps_default_to_now(self, migrator, clock):
        ticket = migrator.migrate({"id": "L-2"})
        assert ticket.created_at == clock.now
        assert ticket.updated_at == clock.now

    def test_unparseable_timestamp_defaults_to_now(self, migrator, clock):
        assert migrator.migrate(canonical_record(createdAt="yesterday")).created_at == clock.now

    def test_updated_at_raised_to_created_at(self):
        record = canonical_record(updatedAt=(T0 - timedelta(hours=1)).isoformat())
        ticket = migrate(record)
        assert ticket.updated_at == ticket.created_at == T0

    def test_naive_timestamps_are_utc(self):
        assert migrate(canonical_record(createdAt="2024-01-15T10:00:00")).created_at == T0

    def test_non_mapping_record(self, migrator):
        result = migrator.migrate_with_report("garbage")
        assert result.was_defaulted
        assert result.defaults[0].field == "record"
        assert isinstance(result.ticket, Ticket)

    def test_accepts_ticket_instances(self):
        ticket = migrate(canonical_record())
        assert migrate(ticket) == ticket


@pytest.mark.unit
class TestMigrateNotes:

    def test_non_list_notes_become_empty(self):
        assert migrate(canonical_record(notes="none")).notes == []

    def test_malformed_notes_dropped(self):
        ticket = migrate(canonical_record(notes=["text", None, {"id": "N-1", "text": "ok"}]))
        assert [n.id for n in ticket.notes] == ["N-1"]

    def test_duplicate_and_missing_note_ids_regenerated(self, migrator):
        notes = [{"id": "N-1", "text": "a"}, {"id": "N-1", "text": "b"}, {"text": "c"}]
        ticket = migrator.migrate(canonical_record(notes=notes))
        ids = [n.id for n in ticket.notes]
        assert ids[0] == "N-1"
        assert len(set(ids)) == 3

    def test_blank_author_dropped(self):
        ticket = migrate(canonical_record(notes=[{"id": "N-1", "text": "a", "author": "  "}]))
        assert ticket.notes[0].author is None


@pytest.mark.unit
class TestMigrationReport:

    def test_defaults_are_reported(self):
        result = migrate_with_report({"id": "L-1", "title": "Legacy", "createdAt": T0.isoformat()})
        fields = {d.field for d in result.defaults}
        assert {"priority", "team", "contactType", "status", "description"} <= fields
        assert "id" not in fields
        assert "title" not in fields

    def test_unconfigured_labels_are_notices_not_defaults(self):
        config = normalize_config({"categories": ["Hardware"], "teams": ["Ops"]})
        result = migrate_with_report(canonical_record(category="Legacy", team="Old Team"), config=config)
        assert not result.was_defaulted
        assert {n.field for n in result.notices} == {"category", "team"}
        assert result.ticket.category == "Legacy"
