"""
Tickets Application Services
============================

Application services orchestrate business logic and coordinate between
domain rules and the stores.

Following SOLID principles:
- Single Responsibility: the repository owns the ticket collection, the
  config store owns the helpdesk config, the service owns the workflows
- Dependency Inversion: the service depends on the store interfaces below,
  not on a storage backend
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from quicket.core import ResourceNotFoundException, ValidationException
from quicket.sla.domain import TicketSLAReport, evaluate_ticket_sla
from quicket.shared.clock import utc_now
from quicket.shared.infrastructure.logging import get_logger
from quicket.tickets.application.dto import TicketCreateDTO, TicketUpdateDTO
from quicket.tickets.application.export import CsvExport, export_csv
from quicket.tickets.domain import (
    FilterCriteria, HelpdeskConfig, Note, Ticket, filter_tickets
)

logger = get_logger(__name__)

ConfirmationGate = Callable[[str], bool]

DELETE_TICKET_PROMPT = "Delete this ticket? This cannot be undone."
RESET_ALL_PROMPT = "Reset ALL data (tickets + config)?"


# ========== Store Interfaces (Dependency Inversion) ==========

class IConfigStore(ABC):
    """Interface for helpdesk config access."""

    @property
    @abstractmethod
    def config(self) -> HelpdeskConfig:
        """Current normalized config."""

    @abstractmethod
    def replace(self, partial: Any) -> HelpdeskConfig:
        """Normalize and persist a whole config document."""

    @abstractmethod
    def reset(self) -> HelpdeskConfig:
        """Drop the stored config and persist the defaults."""


class ITicketRepository(ABC):
    """Interface for ticket collection access."""

    @abstractmethod
    def get(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by id."""

    @abstractmethod
    def list(self) -> List[Ticket]:
        """All tickets, newest first."""

    @abstractmethod
    def create(self, data: TicketCreateDTO) -> Ticket:
        """Validate a submission and store the new ticket."""

    @abstractmethod
    def update(self, ticket_id: str, changes: Union[TicketUpdateDTO, Mapping[str, Any]]) -> Optional[Ticket]:
        """Apply changes to a ticket."""

    @abstractmethod
    def delete(self, ticket_id: str) -> bool:
        """Remove a ticket."""

    @abstractmethod
    def add_note(self, ticket_id: str, text: str, author: Optional[str] = None) -> Optional[Note]:
        """Append a note to a ticket."""

    @abstractmethod
    def delete_note(self, ticket_id: str, note_id: str) -> bool:
        """Remove a note from a ticket."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every ticket."""


# ========== Application Services ==========

class HelpdeskService:
    """
    Workflows of the self-service portal and the admin console.

    Lookups that miss raise ``ResourceNotFoundException`` here so the API
    can answer 404; the repository itself treats them as no-ops.
    Destructive operations ask a ``ConfirmationGate`` first and change
    nothing when it declines.
    """

    def __init__(
        self,
        tickets: ITicketRepository,
        config_store: IConfigStore,
        warning_threshold_percent: int = 15,
        clock: Callable[[], datetime] = utc_now
    ):
        self._tickets = tickets
        self._config_store = config_store
        self._warning_threshold_percent = warning_threshold_percent
        self._clock = clock

    @property
    def config(self) -> HelpdeskConfig:
        return self._config_store.config

    def submit(self, data: TicketCreateDTO) -> Ticket:
        """Self-service submission; raises ``ValidationException`` on bad input."""
        return self._tickets.create(data)

    def list_tickets(
        self,
        criteria: Optional[Union[FilterCriteria, Mapping[str, Any]]] = None
    ) -> List[Ticket]:
        return filter_tickets(self._tickets.list(), criteria)

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    def ticket_sla(self, ticket: Union[Ticket, str]) -> TicketSLAReport:
        """Deadlines and clock states of a ticket under the current config."""
        if not isinstance(ticket, Ticket):
            ticket = self.get_ticket(ticket)
        return evaluate_ticket_sla(
            ticket,
            self.config,
            now=self._clock(),
            warning_threshold_percent=self._warning_threshold_percent,
        )

    def update_ticket(self, ticket_id: str, changes: Union[TicketUpdateDTO, Mapping[str, Any]]) -> Ticket:
        ticket = self._tickets.update(ticket_id, changes)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    def add_note(self, ticket_id: str, text: str, author: Optional[str] = None) -> Note:
        self.get_ticket(ticket_id)
        if not text.strip():
            raise ValidationException(["Note text is required."])
        return self._tickets.add_note(ticket_id, text, author)

    def delete_note(self, ticket_id: str, note_id: str) -> bool:
        self.get_ticket(ticket_id)
        return self._tickets.delete_note(ticket_id, note_id)

    def delete_ticket(self, ticket_id: str, confirm: ConfirmationGate) -> bool:
        """
        Delete a ticket once the gate agrees.

        Returns:
            True when the ticket was removed, False when the gate declined
        """
        self.get_ticket(ticket_id)
        if not confirm(DELETE_TICKET_PROMPT):
            logger.info("Ticket deletion declined", extra={"ticket_id": ticket_id})
            return False
        return self._tickets.delete(ticket_id)

    def reset_all(self, confirm: ConfirmationGate) -> bool:
        """Drop every ticket and restore the default config once the gate agrees."""
        if not confirm(RESET_ALL_PROMPT):
            logger.info("Reset declined")
            return False
        self._tickets.clear()
        self._config_store.reset()
        logger.warning("All tickets and config were reset")
        return True

    def export(
        self,
        criteria: Optional[Union[FilterCriteria, Mapping[str, Any]]] = None,
        today: Optional[date] = None
    ) -> CsvExport:
        """CSV of the (optionally filtered) ticket queue."""
        return export_csv(self.list_tickets(criteria), today or self._clock().date())
