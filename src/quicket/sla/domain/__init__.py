"""
SLA Domain Layer
================

Domain layer for SLA computation.

Contains:
- Value Objects: PrioritySLA, SLADeadlines
- Domain Services: SLACalculator (deadline arithmetic and clock state)
- Entities: SLAClock, TicketSLAReport

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from quicket.sla.domain.entities import SLAClock, TicketSLAReport, evaluate_ticket_sla
from quicket.sla.domain.value_objects import (
    DEFAULT_PRIORITY_SLAS,
    MAX_SLA_MINUTES,
    PrioritySLA,
    SLACalculator,
    SLADeadlines,
    coerce_priority,
    compute_deadlines,
    is_valid_minutes,
    normalize_priority_table,
)

__all__ = [
    # Entities
    "SLAClock",
    "TicketSLAReport",
    "evaluate_ticket_sla",
    # Value Objects & Services
    "DEFAULT_PRIORITY_SLAS",
    "MAX_SLA_MINUTES",
    "PrioritySLA",
    "SLACalculator",
    "SLADeadlines",
    "coerce_priority",
    "compute_deadlines",
    "is_valid_minutes",
    "normalize_priority_table",
]
