"""
Unit tests for the ticket repository
"""
import json
from datetime import datetime, timedelta, timezone

import pytest

from quicket.core import ValidationException
from quicket.infrastructure.storage import InMemoryKeyValueStore
from quicket.tickets.domain import TICKET_ID_PATTERN
from quicket.tickets.infrastructure import DEFAULT_TICKETS_KEY, ConfigStore, TicketRepository

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def stored_tickets(store):
    return json.loads(store.get(DEFAULT_TICKETS_KEY))


def legacy_record(ticket_id, **fields):
    record = {"id": ticket_id, "title": "Legacy", "createdAt": "2024-01-10T09:00:00Z"}
    record.update(fields)
    return record


@pytest.mark.unit
class TestCreate:

    def test_new_ticket_defaults(self, repository, submission, clock):
        ticket = repository.create(submission())
        assert ticket.id == "TCK-20240115-0001"
        assert ticket.status == "Open"
        assert ticket.priority == "P3"
        assert ticket.team == "Unassigned"
        assert ticket.category == "Hardware"
        assert ticket.created_at == ticket.updated_at == clock.now
        assert ticket.notes == []

    def test_persists_collection(self, repository, submission, store):
        ticket = repository.create(submission())
        assert stored_tickets(store) == [ticket.to_record()]

    def test_newest_first(self, repository, submission):
        first = repository.create(submission(title="First"))
        second = repository.create(submission(title="Second"))
        assert [t.id for t in repository.list()] == [second.id, first.id]
        assert second.id.endswith("-0002")

    def test_text_fields_trimmed(self, repository, submission):
        ticket = repository.create(submission(title="  Printer  ", name=" Alex ", contact_value=" a@b.co "))
        assert (ticket.title, ticket.name, ticket.contact_value) == ("Printer", "Alex", "a@b.co")

    def test_chosen_category_kept(self, repository, submission):
        assert repository.create(submission(category="Software")).category == "Software"

    def test_requester_team_ignored_by_default(self, repository, submission):
        assert repository.create(submission(team="Networking")).team == "Unassigned"

    def test_requester_team_kept_when_enabled(self, store, config_store, clock, submission):
        repository = TicketRepository(store, config_store=config_store, clock=clock, requester_selects_team=True)
        assert repository.create(submission(team="Networking")).team == "Networking"

    def test_invalid_email_leaves_collection_unchanged(self, repository, submission, store):
        repository.create(submission())
        before = store.get(DEFAULT_TICKETS_KEY)

        with pytest.raises(ValidationException) as exc_info:
            repository.create(submission(contact_value="not-an-email"))

        assert exc_info.value.errors == ["Please enter a valid email address."]
        assert len(repository.list()) == 1
        assert store.get(DEFAULT_TICKETS_KEY) == before

    def test_failed_validation_writes_nothing(self, repository, submission, store):
        with pytest.raises(ValidationException):
            repository.create(submission(title="", contact_type="phone", contact_value="123"))
        assert DEFAULT_TICKETS_KEY not in store

    def test_custom_prefix(self, store, clock, submission):
        repository = TicketRepository(store, id_prefix="IT", clock=clock)
        assert repository.create(submission()).id == "IT-20240115-0001"


@pytest.mark.unit
class TestUpdateAndDelete:

    def test_update_merges_and_stamps(self, repository, submission, clock):
        ticket = repository.create(submission())
        clock.advance(minutes=5)

        updated = repository.update(ticket.id, {"status": "In Progress", "priority": "P1"})

        assert updated.status == "In Progress"
        assert updated.priority == "P1"
        assert updated.title == ticket.title
        assert updated.updated_at == clock.now
        assert repository.get(ticket.id) == updated

    def test_update_accepts_camel_case(self, repository, submission):
        ticket = repository.create(submission())
        assert repository.update(ticket.id, {"contactType": "phone", "contactValue": "5551234567"}).contact_type == "phone"

    def test_update_cannot_change_identity(self, repository, submission):
        ticket = repository.create(submission())
        updated = repository.update(ticket.id, {"id": "HACK", "createdAt": "2000-01-01T00:00:00Z", "notes": []})
        assert updated.id == ticket.id
        assert updated.created_at == ticket.created_at

    def test_blank_team_becomes_unassigned(self, repository, submission):
        ticket = repository.create(submission())
        repository.update(ticket.id, {"team": "Networking"})
        assert repository.update(ticket.id, {"team": " "}).team == "Unassigned"

    def test_update_unknown_is_noop(self, repository, store):
        assert repository.update("TCK-00000000-0000", {"status": "Closed"}) is None
        assert DEFAULT_TICKETS_KEY not in store

    def test_delete(self, repository, submission, store):
        ticket = repository.create(submission())
        assert repository.delete(ticket.id) is True
        assert repository.get(ticket.id) is None
        assert stored_tickets(store) == []

    def test_delete_unknown_is_noop(self, repository, submission):
        repository.create(submission())
        assert repository.delete("nope") is False
        assert len(repository.list()) == 1


@pytest.mark.unit
class TestNotes:

    def test_add_note(self, repository, submission, clock):
        ticket = repository.create(submission())
        clock.advance(minutes=1)

        note = repository.add_note(ticket.id, "  Checked the cable  ", author=" Jo ")

        assert note.id == f"N-{int(clock.now.timestamp() * 1000)}"
        assert note.text == "Checked the cable"
        assert note.author == "Jo"
        assert note.created_at == clock.now
        stored = repository.get(ticket.id)
        assert stored.notes == [note]
        assert stored.updated_at == clock.now

    def test_blank_author_stored_as_absent(self, repository, submission, store):
        ticket = repository.create(submission())
        repository.add_note(ticket.id, "Hi", author="  ")
        assert "author" not in stored_tickets(store)[0]["notes"][0]

    def test_note_ids_unique_within_ticket(self, repository, submission):
        ticket = repository.create(submission())
        first = repository.add_note(ticket.id, "one")
        second = repository.add_note(ticket.id, "two")
        assert first.id != second.id

    def test_blank_text_is_noop(self, repository, submission):
        ticket = repository.create(submission())
        assert repository.add_note(ticket.id, "   ") is None
        assert repository.get(ticket.id).notes == []

    def test_unknown_ticket_is_noop(self, repository):
        assert repository.add_note("nope", "text") is None

    def test_delete_note(self, repository, submission):
        ticket = repository.create(submission())
        note = repository.add_note(ticket.id, "text")
        assert repository.delete_note(ticket.id, note.id) is True
        assert repository.get(ticket.id).notes == []

    def test_delete_unknown_note_leaves_notes_unchanged(self, repository, submission):
        ticket = repository.create(submission())
        note = repository.add_note(ticket.id, "text")
        before = repository.get(ticket.id)

        assert repository.delete_note(ticket.id, "N-0") is False
        assert repository.delete_note("nope", note.id) is False
        assert repository.get(ticket.id) == before


@pytest.mark.unit
class TestLoading:

    def test_legacy_records_migrated_and_written_back(self, clock):
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: json.dumps([legacy_record("L-1")])})
        repository = TicketRepository(store, clock=clock)

        ticket = repository.get("L-1")
        assert ticket.priority == "P3"
        assert ticket.team == "Unassigned"
        assert stored_tickets(store)[0]["priority"] == "P3"

    def test_canonical_records_not_rewritten(self, repository, submission, store, clock):
        repository.create(submission())
        raw = store.get(DEFAULT_TICKETS_KEY)
        writes = []
        store.set = lambda key, value: writes.append(key)

        TicketRepository(store, clock=clock)

        assert writes == []
        assert store.get(DEFAULT_TICKETS_KEY) == raw

    @pytest.mark.parametrize("raw", ["{broken", json.dumps({"not": "a list"}), json.dumps("text")])
    def test_malformed_document_gives_empty_collection(self, raw, clock):
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: raw})
        repository = TicketRepository(store, clock=clock)
        assert repository.list() == []
        assert store.get(DEFAULT_TICKETS_KEY) == raw

    def test_sequence_continues_after_stored_tickets(self, clock, submission):
        records = [legacy_record("L-1"), legacy_record("L-2")]
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: json.dumps(records)})
        repository = TicketRepository(store, clock=clock)
        assert repository.create(submission()).id == "TCK-20240115-0003"

    def test_generated_ids_skip_stored_ones(self, clock, submission):
        records = [legacy_record("TCK-20240115-0002")]
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: json.dumps(records)})
        repository = TicketRepository(store, clock=clock)
        assert repository.create(submission()).id == "TCK-20240115-0003"

    def test_duplicate_stored_ids_are_replaced(self, clock):
        records = [legacy_record("L-1"), legacy_record("L-1", title="Twin")]
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: json.dumps(records)})
        ids = [t.id for t in TicketRepository(store, clock=clock).list()]
        assert ids[0] == "L-1"
        assert TICKET_ID_PATTERN.match(ids[1])

    def test_records_without_id_get_one(self, clock):
        store = InMemoryKeyValueStore({DEFAULT_TICKETS_KEY: json.dumps([{"title": "No id"}])})
        ticket = TicketRepository(store, clock=clock).list()[0]
        assert ticket.id == "TCK-20240115-0002"

    def test_clear(self, repository, submission, store):
        repository.create(submission())
        repository.clear()
        assert repository.list() == []
        assert DEFAULT_TICKETS_KEY not in store
        assert repository.create(submission()).id.endswith("-0001")

    def test_category_defaults_to_first_configured(self, store, clock, submission):
        config_store = ConfigStore(store)
        config_store.replace({"categories": ["VPN", "Email"]})
        repository = TicketRepository(store, config_store=config_store, clock=clock)
        assert repository.create(submission()).category == "VPN"

    def test_updated_at_never_precedes_created_at(self, repository, submission, clock):
        ticket = repository.create(submission())
        clock.now = clock.now - timedelta(hours=1)
        assert repository.update(ticket.id, {"status": "Closed"}).updated_at == ticket.created_at
