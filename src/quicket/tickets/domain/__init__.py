"""
Tickets Domain Layer
====================

Contains:
- Entities: Ticket, Note
- Value Objects: ticket/note ids, HelpdeskConfig, FilterCriteria
- Domain Services: submission validation, queue filtering, record migration

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from quicket.tickets.domain.entities import (
    ContactTypeStr,
    Note,
    PriorityStr,
    Ticket,
    TicketStatusStr,
)
from quicket.tickets.domain.value_objects import (
    DEFAULT_CATEGORIES,
    DEFAULT_TEAMS,
    TICKET_ID_PATTERN,
    FilterCriteria,
    HelpdeskConfig,
    TicketIdGenerator,
    generate_note_id,
    generate_ticket_id,
    normalize_config,
)
from quicket.tickets.domain.migration import (
    FieldDefault,
    MigrationResult,
    TicketMigrator,
    migrate,
    migrate_with_report,
)
from quicket.tickets.domain.services import (
    filter_tickets,
    matches,
    validate_submission,
)

__all__ = [
    # Entities
    "ContactTypeStr",
    "Note",
    "PriorityStr",
    "Ticket",
    "TicketStatusStr",
    # Value Objects
    "DEFAULT_CATEGORIES",
    "DEFAULT_TEAMS",
    "TICKET_ID_PATTERN",
    "FilterCriteria",
    "HelpdeskConfig",
    "TicketIdGenerator",
    "generate_note_id",
    "generate_ticket_id",
    "normalize_config",
    # Migration
    "FieldDefault",
    "MigrationResult",
    "TicketMigrator",
    "migrate",
    "migrate_with_report",
    # Services
    "filter_tickets",
    "matches",
    "validate_submission",
]
