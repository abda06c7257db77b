"""
SLA Domain Entities
====================

Evaluated SLA clocks of a ticket.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from quicket.config import CLOSED_STATUSES, SLAState, TicketStatus
from quicket.sla.domain.value_objects import SLACalculator, SLADeadlines
from quicket.shared.clock import parse_timestamp, utc_now


@dataclass
class SLAClock:
    """State of one SLA clock (respond or resolve)."""

    deadline: datetime
    remaining_seconds: float
    percentage_remaining: float
    is_breached: bool
    state: str
    met_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "deadline": self.deadline.isoformat(),
            "remainingSeconds": self.remaining_seconds,
            "percentageRemaining": self.percentage_remaining,
            "isBreached": self.is_breached,
            "state": self.state,
            "metAt": self.met_at.isoformat() if self.met_at else None,
        }


@dataclass
class TicketSLAReport:
    """
    SLA report for a ticket.

    Contains both deadlines and the evaluated state of each clock.
    """

    ticket_id: str
    deadlines: SLADeadlines
    respond: SLAClock
    resolve: SLAClock

    is_any_breached: bool = field(init=False)

    def __post_init__(self):
        """Calculate overall breach status."""
        self.is_any_breached = self.respond.is_breached or self.resolve.is_breached

    @property
    def most_urgent_state(self) -> str:
        """Get the most urgent SLA state."""
        if self.is_any_breached:
            return SLAState.BREACHED
        if SLAState.AT_RISK in (self.respond.state, self.resolve.state):
            return SLAState.AT_RISK
        if self.respond.state == SLAState.MET and self.resolve.state == SLAState.MET:
            return SLAState.MET
        return SLAState.ON_TRACK

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "ticketId": self.ticket_id,
            **self.deadlines.to_dict(),
            "respond": self.respond.to_dict(),
            "resolve": self.resolve.to_dict(),
            "overallState": self.most_urgent_state,
        }


def _first_response_at(status: str, updated_at: Optional[datetime], notes: Iterable[Any]) -> Optional[datetime]:
    """The first note counts as a response; so does moving the ticket out of Open."""
    note_times = [
        ts for ts in (parse_timestamp(getattr(n, "created_at", None)) for n in notes) if ts
    ]
    if note_times:
        return min(note_times)
    if status != TicketStatus.OPEN:
        return updated_at
    return None


def _evaluate_clock(
    created_at: datetime,
    deadline: datetime,
    now: datetime,
    met_at: Optional[datetime],
    warning_threshold_percent: int
) -> SLAClock:
    remaining, percentage, breached = SLACalculator.calculate_remaining_metrics(
        created_at, deadline, now, met_at
    )
    state = SLACalculator.calculate_status(
        created_at, deadline, now, met_at, warning_threshold_percent
    )
    return SLAClock(
        deadline=deadline,
        remaining_seconds=remaining,
        percentage_remaining=percentage,
        is_breached=breached,
        state=state,
        met_at=met_at,
    )


def evaluate_ticket_sla(
    ticket: Any,
    config: Any = None,
    now: Optional[datetime] = None,
    warning_threshold_percent: int = 15
) -> TicketSLAReport:
    """
    Evaluate both SLA clocks of a ticket.

    The respond clock is met by the first note, or by the ticket leaving
    Open. The resolve clock is met when the ticket is Resolved or Closed,
    at its last update.
    """
    now = now or utc_now()
    deadlines = SLACalculator.compute_deadlines(ticket.priority, ticket.created_at, config)
    updated_at = parse_timestamp(ticket.updated_at)

    respond_met = _first_response_at(ticket.status, updated_at, ticket.notes)
    resolve_met = updated_at if ticket.status in CLOSED_STATUSES else None

    return TicketSLAReport(
        ticket_id=ticket.id,
        deadlines=deadlines,
        respond=_evaluate_clock(
            deadlines.created_at, deadlines.respond_due, now, respond_met, warning_threshold_percent
        ),
        resolve=_evaluate_clock(
            deadlines.created_at, deadlines.resolve_due, now, resolve_met, warning_threshold_percent
        ),
    )
