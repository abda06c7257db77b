"""
Tickets Application Layer
=========================

Contains:
- Services: portal and admin workflows, store interfaces
- DTOs: request/response models of the HTTP API
- Export: CSV rendering of the queue
- Diagnostics: startup self-check

This layer depends on the domain layer and store interfaces,
but not on concrete infrastructure implementations.
"""

from quicket.tickets.application.dto import (
    DeleteResponse,
    ErrorResponse,
    LabelDTO,
    NoteCreateDTO,
    PrioritySLAUpdateDTO,
    ResetResponse,
    SubmissionResponse,
    TicketCreateDTO,
    TicketUpdateDTO,
)
from quicket.tickets.application.export import CsvExport, EXPORT_COLUMNS, export_csv
from quicket.tickets.application.diagnostics import CheckResult, SelfCheckReport, run_self_check
from quicket.tickets.application.services import (
    DELETE_TICKET_PROMPT,
    RESET_ALL_PROMPT,
    ConfirmationGate,
    HelpdeskService,
    IConfigStore,
    ITicketRepository,
)

__all__ = [
    # DTOs
    "DeleteResponse",
    "ErrorResponse",
    "LabelDTO",
    "NoteCreateDTO",
    "PrioritySLAUpdateDTO",
    "ResetResponse",
    "SubmissionResponse",
    "TicketCreateDTO",
    "TicketUpdateDTO",
    # Export
    "CsvExport",
    "EXPORT_COLUMNS",
    "export_csv",
    # Diagnostics
    "CheckResult",
    "SelfCheckReport",
    "run_self_check",
    # Services
    "DELETE_TICKET_PROMPT",
    "RESET_ALL_PROMPT",
    "ConfirmationGate",
    "HelpdeskService",
    "IConfigStore",
    "ITicketRepository",
]
