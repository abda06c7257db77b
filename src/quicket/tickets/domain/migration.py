"""
Ticket Migration
================

Turns any stored record, including ones written by older versions of the
portal, into a canonical ``Ticket``.

There is no schema version field: every record is migrated on load, and
migrating a canonical ticket changes nothing. Absent or invalid fields are
replaced with safe defaults. The replacements are recorded on a
``MigrationResult`` so they can be audited, but migration itself never
fails.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional

from quicket.config import (
    ContactType, FALLBACK_CATEGORY, TicketStatus, UNASSIGNED_TEAM,
    VALID_CONTACT_TYPES, VALID_PRIORITIES, VALID_STATUSES
)
from quicket.sla.domain import coerce_priority
from quicket.shared.clock import parse_timestamp, utc_now
from quicket.tickets.domain.entities import Note, Ticket
from quicket.tickets.domain.value_objects import (
    HelpdeskConfig, TicketIdGenerator, generate_note_id
)

_STATUS_LOOKUP = {s.replace(" ", "").lower(): s for s in VALID_STATUSES}


@dataclass(frozen=True)
class FieldDefault:
    """A field that was replaced (or kept with a caveat) during migration."""
    field: str
    reason: str


@dataclass
class MigrationResult:
    """Canonical ticket plus the audit trail of what migration changed."""
    ticket: Ticket
    defaults: List[FieldDefault] = field(default_factory=list)
    notices: List[FieldDefault] = field(default_factory=list)

    @property
    def was_defaulted(self) -> bool:
        return bool(self.defaults)


def _pick(raw: Mapping, *keys: str) -> Any:
    """First present key wins; camelCase first, snake_case for Python callers."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _normalize_status(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    key = value.replace("_", "").replace("-", "").replace(" ", "").lower()
    return _STATUS_LOOKUP.get(key)


class TicketMigrator:
    """
    Converts raw records into canonical tickets.

    Args:
        id_generator: Source of ids for records stored without one
        config: Loaded helpdesk config, used to flag free-text categories/teams
        clock: Returns the instant used for missing timestamps
    """

    def __init__(
        self,
        id_generator: Optional[TicketIdGenerator] = None,
        config: Optional[HelpdeskConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.id_generator = id_generator or TicketIdGenerator()
        self.config = config
        self._clock = clock

    def migrate(self, raw: Any) -> Ticket:
        return self.migrate_with_report(raw).ticket

    def migrate_with_report(self, raw: Any) -> MigrationResult:
        if isinstance(raw, Ticket):
            raw = raw.to_record()
        defaults: List[FieldDefault] = []
        notices: List[FieldDefault] = []

        def default(name: str, reason: str) -> None:
            defaults.append(FieldDefault(name, reason))

        if not isinstance(raw, Mapping):
            default("record", f"expected an object, got {type(raw).__name__}")
            raw = {}

        now = self._clock()

        ticket_id = _pick(raw, "id")
        if not isinstance(ticket_id, str) or not ticket_id.strip():
            ticket_id = self.id_generator.next_id(now)
            default("id", "missing; generated")
        else:
            ticket_id = ticket_id.strip()

        def text(name: str, *keys: str) -> str:
            value = _pick(raw, name, *keys)
            if isinstance(value, str):
                return value
            default(name, "missing" if value is None else f"not a string ({type(value).__name__})")
            return ""

        title = text("title")
        description = text("description")
        name = text("name", "requesterName", "requester_name")
        contact_value = text("contactValue", "contact_value")

        contact_type = _pick(raw, "contactType", "contact_type")
        if contact_type not in VALID_CONTACT_TYPES:
            if contact_type is not None:
                default("contactType", f"unknown contact type {contact_type!r}")
            else:
                default("contactType", "missing")
            contact_type = ContactType.EMAIL

        category = _pick(raw, "category")
        if not isinstance(category, str) or not category.strip():
            default("category", "missing")
            category = FALLBACK_CATEGORY
        elif self.config and category not in self.config.categories:
            notices.append(FieldDefault("category", f"{category!r} is not configured; kept as free text"))

        team = _pick(raw, "team")
        if not isinstance(team, str) or not team.strip():
            default("team", "missing")
            team = UNASSIGNED_TEAM
        elif self.config and team not in self.config.teams:
            notices.append(FieldDefault("team", f"{team!r} is not configured; kept as free text"))

        raw_status = _pick(raw, "status")
        status = _normalize_status(raw_status)
        if status is None:
            default("status", f"unknown status {raw_status!r}")
            status = TicketStatus.OPEN
        elif status != raw_status:
            default("status", f"{raw_status!r} normalized")

        raw_priority = _pick(raw, "priority")
        priority = coerce_priority(raw_priority)
        if raw_priority not in VALID_PRIORITIES:
            default("priority", f"unknown priority {raw_priority!r}")

        created_at = parse_timestamp(_pick(raw, "createdAt", "created_at"))
        if created_at is None:
            default("createdAt", "missing or unparseable")
            created_at = now

        updated_at = parse_timestamp(_pick(raw, "updatedAt", "updated_at"))
        if updated_at is None:
            default("updatedAt", "missing or unparseable")
            updated_at = max(now, created_at)
        elif updated_at < created_at:
            default("updatedAt", "earlier than createdAt")
            updated_at = created_at

        notes = self._migrate_notes(_pick(raw, "notes"), now, default)

        ticket = Ticket(
            id=ticket_id,
            title=title,
            description=description,
            name=name,
            contact_type=contact_type,
            contact_value=contact_value,
            category=category,
            team=team,
            status=status,
            priority=priority,
            created_at=created_at,
            updated_at=updated_at,
            notes=notes,
        )
        return MigrationResult(ticket=ticket, defaults=defaults, notices=notices)

    def _migrate_notes(self, raw_notes: Any, now: datetime, default: Callable[[str, str], None]) -> List[Note]:
        if not isinstance(raw_notes, list):
            if raw_notes is not None:
                default("notes", f"not a list ({type(raw_notes).__name__})")
            return []

        notes: List[Note] = []
        for index, raw in enumerate(raw_notes):
            if isinstance(raw, Note):
                raw = raw.model_dump(by_alias=True)
            if not isinstance(raw, Mapping):
                default(f"notes[{index}]", "not an object; dropped")
                continue

            taken = [n.id for n in notes]
            note_id = raw.get("id")
            if not isinstance(note_id, str) or not note_id.strip() or note_id in taken:
                default(f"notes[{index}].id", "missing or duplicate; generated")
                note_id = generate_note_id(taken, now)

            note_text = raw.get("text")
            if not isinstance(note_text, str):
                default(f"notes[{index}].text", "not a string")
                note_text = ""

            author = raw.get("author")
            if not isinstance(author, str) or not author.strip():
                author = None

            created_at = parse_timestamp(_pick(raw, "createdAt", "created_at"))
            if created_at is None:
                default(f"notes[{index}].createdAt", "missing or unparseable")
                created_at = now

            notes.append(Note(id=note_id, text=note_text, author=author, created_at=created_at))
        return notes


def migrate(raw: Any, config: Optional[HelpdeskConfig] = None, id_generator: Optional[TicketIdGenerator] = None) -> Ticket:
    """Migrate one record with a throwaway migrator."""
    return TicketMigrator(id_generator=id_generator, config=config).migrate(raw)


def migrate_with_report(
    raw: Any,
    config: Optional[HelpdeskConfig] = None,
    id_generator: Optional[TicketIdGenerator] = None
) -> MigrationResult:
    """Migrate one record and report the defaulted fields."""
    return TicketMigrator(id_generator=id_generator, config=config).migrate_with_report(raw)
