"""
Tickets Infrastructure Repositories
===================================

Concrete stores backed by a ``KeyValueStore``.

Both the ticket collection and the helpdesk config are single JSON
documents. They are read once at construction, kept in memory, and
rewritten wholesale after every mutation. Unreadable documents degrade to
an empty collection or the default config; they never raise.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from quicket.config import UNASSIGNED_TEAM, VALID_PRIORITIES
from quicket.core import ConfigurationException, RepositoryException, ValidationException
from quicket.infrastructure.storage import KeyValueStore
from quicket.sla.domain import MAX_SLA_MINUTES, is_valid_minutes
from quicket.shared.clock import utc_now
from quicket.shared.infrastructure.logging import get_logger, log_latency
from quicket.tickets.application import (
    IConfigStore, ITicketRepository, TicketCreateDTO, TicketUpdateDTO
)
from quicket.tickets.domain import (
    HelpdeskConfig, Note, Ticket, TicketIdGenerator, TicketMigrator,
    generate_note_id, normalize_config, validate_submission
)

logger = get_logger(__name__)

DEFAULT_TICKETS_KEY = "quicket_tickets_v1"
DEFAULT_CONFIG_KEY = "quicket_config_v1"


def _read_document(store: KeyValueStore, key: str) -> Optional[str]:
    try:
        return store.get(key)
    except RepositoryException as e:
        logger.warning("Storage read failed; using defaults", extra={"key": key, "error": e.message})
        return None


def _parse_document(raw: Optional[str], key: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Stored document is not valid JSON; ignoring it", extra={"key": key})
        return None


def load_config_seed(path: Union[str, Path]) -> Any:
    """
    Read a YAML config seed.

    Raises:
        ConfigurationException: the file cannot be read or is not valid YAML
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationException(
            f"Config seed file {str(path)!r} is unreadable",
            {"path": str(path), "error": str(e)}
        ) from e


class ConfigStore(IConfigStore):
    """
    Helpdesk config persisted under ``storage_key``.

    On first start (no stored document) the config is seeded from the YAML
    file at ``seed_path`` when it exists, otherwise from the defaults, and
    written back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = DEFAULT_CONFIG_KEY,
        seed_path: Optional[Union[str, Path]] = None
    ):
        self._store = store
        self._storage_key = storage_key
        self._seed_path = Path(seed_path) if seed_path else None
        self._config = self._load()

    @property
    def config(self) -> HelpdeskConfig:
        return self._config

    def _load(self) -> HelpdeskConfig:
        raw = _read_document(self._store, self._storage_key)
        if raw is not None:
            return normalize_config(_parse_document(raw, self._storage_key))

        config = normalize_config(self._load_seed())
        self._persist(config)
        return config

    def _load_seed(self) -> Any:
        """Load the YAML seed file, or None."""
        if self._seed_path is None or not self._seed_path.is_file():
            return None
        try:
            data = load_config_seed(self._seed_path)
        except ConfigurationException as e:
            logger.warning("Config seed file unreadable; using defaults", extra=e.details)
            return None
        logger.info("Helpdesk config seeded from file", extra={"path": str(self._seed_path)})
        return data

    def _persist(self, config: HelpdeskConfig) -> None:
        with log_latency(logger, "persist_config"):
            self._store.set(self._storage_key, json.dumps(config.to_record()))

    def save(self, config: HelpdeskConfig) -> HelpdeskConfig:
        """Normalize and persist ``config``; it becomes the current config."""
        self._config = normalize_config(config)
        self._persist(self._config)
        return self._config

    def replace(self, partial: Any) -> HelpdeskConfig:
        return self.save(normalize_config(partial))

    def update(self, partial: Mapping[str, Any]) -> HelpdeskConfig:
        """
        Merge ``partial`` into the current config.

        Top-level keys replace the current value; ``priorities`` merges per
        priority and per field.
        """
        record = self._config.to_record()
        for key in ("categories", "teams"):
            if key in partial:
                record[key] = partial[key]

        priorities = partial.get("priorities")
        if isinstance(priorities, Mapping):
            for priority, entry in priorities.items():
                if priority in record["priorities"] and isinstance(entry, Mapping):
                    record["priorities"][priority] = {**record["priorities"][priority], **entry}
        return self.replace(record)

    def add_category(self, name: str) -> HelpdeskConfig:
        return self._add_label("categories", name)

    def remove_category(self, name: str) -> HelpdeskConfig:
        return self._remove_label("categories", name)

    def add_team(self, name: str) -> HelpdeskConfig:
        return self._add_label("teams", name)

    def remove_team(self, name: str) -> HelpdeskConfig:
        if name.strip() == UNASSIGNED_TEAM:
            return self._config
        return self._remove_label("teams", name)

    def _add_label(self, field: str, name: str) -> HelpdeskConfig:
        label = name.strip()
        labels: List[str] = getattr(self._config, field)
        if not label or label in labels:
            return self._config
        logger.info("Config label added", extra={"field": field, "label": label})
        return self.replace({**self._config.to_record(), field: [*labels, label]})

    def _remove_label(self, field: str, name: str) -> HelpdeskConfig:
        label = name.strip()
        labels: List[str] = getattr(self._config, field)
        if label not in labels:
            return self._config
        logger.info("Config label removed", extra={"field": field, "label": label})
        # An emptied list normalizes back to the defaults
        return self.replace({**self._config.to_record(), field: [x for x in labels if x != label]})

    def set_priority_sla(
        self,
        priority: str,
        label: Optional[str] = None,
        respond_minutes: Optional[float] = None,
        resolve_minutes: Optional[float] = None
    ) -> HelpdeskConfig:
        """
        Change one priority's SLA entry. Arguments left as None keep their value.

        Raises:
            ValidationException: unknown priority or invalid minute values
        """
        errors = []
        if priority not in VALID_PRIORITIES:
            errors.append(f"Unknown priority {priority!r}.")
        for field, value in (("respondMinutes", respond_minutes), ("resolveMinutes", resolve_minutes)):
            if value is not None and not is_valid_minutes(value):
                errors.append(f"{field} must be a number between 0 and {MAX_SLA_MINUTES}.")
        if label is not None and not label.strip():
            errors.append("Priority label is required.")
        if errors:
            raise ValidationException(errors)

        entry: Dict[str, Any] = {}
        if label is not None:
            entry["label"] = label.strip()
        if respond_minutes is not None:
            entry["respondMinutes"] = respond_minutes
        if resolve_minutes is not None:
            entry["resolveMinutes"] = resolve_minutes
        logger.info("Priority SLA changed", extra={"priority": priority, **entry})
        return self.update({"priorities": {priority: entry}})

    def reset(self) -> HelpdeskConfig:
        self._store.delete(self._storage_key)
        return self.save(normalize_config(None))


class TicketRepository(ITicketRepository):
    """
    Ticket collection persisted under ``storage_key``, newest first.

    Records are migrated on load. When migration had to fill in a field the
    migrated collection is written back, so the stored document converges
    on the canonical shape.

    Lookups that miss are no-ops: ``update`` and ``add_note`` return None,
    ``delete`` and ``delete_note`` return False.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = DEFAULT_TICKETS_KEY,
        config_store: Optional[IConfigStore] = None,
        id_prefix: str = "TCK",
        requester_selects_team: bool = False,
        clock: Callable[[], datetime] = utc_now
    ):
        self._store = store
        self._storage_key = storage_key
        self._config_store = config_store
        self._id_prefix = id_prefix
        self._requester_selects_team = requester_selects_team
        self._clock = clock
        self._id_generator = TicketIdGenerator(prefix=id_prefix)
        self._tickets: List[Ticket] = self._load()

    @property
    def config(self) -> HelpdeskConfig:
        if self._config_store is None:
            return normalize_config(None)
        return self._config_store.config

    # ========== Loading ==========

    def _load(self) -> List[Ticket]:
        records = _parse_document(_read_document(self._store, self._storage_key), self._storage_key)
        if records is None:
            return []
        if not isinstance(records, list):
            logger.warning("Stored tickets are not a list; starting empty", extra={"key": self._storage_key})
            return []

        self._id_generator = TicketIdGenerator.for_collection_size(len(records), self._id_prefix)
        migrator = TicketMigrator(id_generator=self._id_generator, config=self.config, clock=self._clock)

        tickets: List[Ticket] = []
        seen = set()
        defaulted = False
        for record in records:
            result = migrator.migrate_with_report(record)
            ticket = result.ticket
            if ticket.id in seen:
                ticket = ticket.model_copy(update={"id": self._next_id(seen)})
                defaulted = True
            if result.was_defaulted:
                defaulted = True
                logger.debug(
                    "Ticket record migrated",
                    extra={
                        "ticket_id": ticket.id,
                        "defaults": [f"{d.field}: {d.reason}" for d in result.defaults],
                    }
                )
            seen.add(ticket.id)
            tickets.append(ticket)

        if defaulted:
            self._tickets = tickets
            self._persist()
        logger.info("Tickets loaded", extra={"count": len(tickets), "migrated": defaulted})
        return tickets

    def _next_id(self, taken: Optional[set] = None) -> str:
        """Next generated id not already in use."""
        taken = taken if taken is not None else {t.id for t in self._tickets}
        now = self._clock()
        ticket_id = self._id_generator.next_id(now)
        # The 4-digit sequence wraps, so skip over ids already stored
        for _ in range(10000):
            if ticket_id not in taken:
                break
            ticket_id = self._id_generator.next_id(now)
        return ticket_id

    def _persist(self) -> None:
        payload = json.dumps([t.to_record() for t in self._tickets])
        with log_latency(logger, "persist_tickets", count=len(self._tickets)):
            self._store.set(self._storage_key, payload)

    def _index_of(self, ticket_id: str) -> Optional[int]:
        return next((i for i, t in enumerate(self._tickets) if t.id == ticket_id), None)

    # ========== Queries ==========

    def get(self, ticket_id: str) -> Optional[Ticket]:
        index = self._index_of(ticket_id)
        return self._tickets[index] if index is not None else None

    def list(self) -> List[Ticket]:
        return list(self._tickets)

    # ========== Mutations ==========

    def create(self, data: TicketCreateDTO) -> Ticket:
        """
        Validate a submission and prepend the new ticket.

        Raises:
            ValidationException: with every violation, in form order; the
                collection is left untouched
        """
        errors = validate_submission(
            data.title, data.description, data.name, data.contact_type, data.contact_value
        )
        if errors:
            logger.info("Ticket submission rejected", extra={"error_count": len(errors)})
            raise ValidationException(errors)

        category = (data.category or "").strip() or self.config.categories[0]
        team = UNASSIGNED_TEAM
        if self._requester_selects_team and data.team and data.team.strip():
            team = data.team.strip()

        now = self._clock()
        ticket = Ticket(
            id=self._next_id(),
            title=data.title.strip(),
            description=data.description.strip(),
            name=data.name.strip(),
            contact_type=data.contact_type,
            contact_value=data.contact_value.strip(),
            category=category,
            team=team,
            created_at=now,
            updated_at=now,
        )
        self._tickets.insert(0, ticket)
        self._persist()

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.id, "category": ticket.category, "team": ticket.team}
        )
        return ticket

    def update(
        self,
        ticket_id: str,
        changes: Union[TicketUpdateDTO, Mapping[str, Any]]
    ) -> Optional[Ticket]:
        """
        Apply the set fields of ``changes`` and stamp ``updated_at``.

        ``id``, ``created_at`` and ``notes`` cannot be changed here.
        """
        index = self._index_of(ticket_id)
        if index is None:
            return None

        if not isinstance(changes, TicketUpdateDTO):
            changes = TicketUpdateDTO.model_validate(dict(changes))
        fields = changes.changes()
        if "team" in fields and not fields["team"].strip():
            fields["team"] = UNASSIGNED_TEAM

        current = self._tickets[index]
        updated_at = max(self._clock(), current.created_at)
        ticket = current.model_copy(update={**fields, "updated_at": updated_at})
        self._tickets[index] = ticket
        self._persist()

        logger.info("Ticket updated", extra={"ticket_id": ticket_id, "fields": sorted(fields)})
        return ticket

    def delete(self, ticket_id: str) -> bool:
        index = self._index_of(ticket_id)
        if index is None:
            return False
        del self._tickets[index]
        self._persist()
        logger.info("Ticket deleted", extra={"ticket_id": ticket_id})
        return True

    def add_note(self, ticket_id: str, text: str, author: Optional[str] = None) -> Optional[Note]:
        """Append a note; no-op when the ticket is unknown or ``text`` is blank."""
        index = self._index_of(ticket_id)
        text = text.strip()
        if index is None or not text:
            return None

        ticket = self._tickets[index]
        now = max(self._clock(), ticket.created_at)
        note = Note(
            id=generate_note_id((n.id for n in ticket.notes), now),
            text=text,
            author=(author or "").strip() or None,
            created_at=now,
        )
        self._tickets[index] = ticket.model_copy(
            update={"notes": [*ticket.notes, note], "updated_at": now}
        )
        self._persist()

        logger.info("Note added", extra={"ticket_id": ticket_id, "note_id": note.id})
        return note

    def delete_note(self, ticket_id: str, note_id: str) -> bool:
        index = self._index_of(ticket_id)
        if index is None:
            return False
        ticket = self._tickets[index]
        if ticket.find_note(note_id) is None:
            return False

        self._tickets[index] = ticket.model_copy(update={
            "notes": [n for n in ticket.notes if n.id != note_id],
            "updated_at": max(self._clock(), ticket.created_at),
        })
        self._persist()
        logger.info("Note deleted", extra={"ticket_id": ticket_id, "note_id": note_id})
        return True

    def clear(self) -> None:
        """Remove every ticket and the stored document; ids restart at 1."""
        self._tickets = []
        self._id_generator = TicketIdGenerator(prefix=self._id_prefix)
        self._store.delete(self._storage_key)
        logger.info("Tickets cleared")
