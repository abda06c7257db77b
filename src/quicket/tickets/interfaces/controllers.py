"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the self-service portal and the admin console.

Controllers are thin - they delegate to application services. Handlers
are ``async`` so that they run one at a time on the event loop; the
stores underneath are synchronous and unsynchronized.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from quicket.config import FILTER_ALL
from quicket.shared.infrastructure.logging import get_logger
from quicket.tickets.application import (
    DeleteResponse, ErrorResponse, HelpdeskService, LabelDTO, NoteCreateDTO,
    PrioritySLAUpdateDTO, ResetResponse, SubmissionResponse, TicketCreateDTO,
    TicketUpdateDTO
)
from quicket.tickets.domain import FilterCriteria, Ticket
from quicket.tickets.infrastructure import ConfigStore

logger = get_logger(__name__)

portal_router = APIRouter(prefix="/portal", tags=["Self-Service Portal"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Console"])


# ========== Example payloads for Swagger ==========

TICKET_SUBMIT_EXAMPLE = {
    "title": "Laptop will not boot",
    "description": "Black screen after the latest update.",
    "name": "Dana Smith",
    "contactType": "email",
    "contactValue": "dana@example.com",
    "category": "Hardware"
}

VALIDATION_ERROR_EXAMPLE = {
    "detail": "Title is required. \nPlease enter a valid email address.",
    "errors": ["Title is required.", "Please enter a valid email address."]
}


# ========== Dependencies ==========

async def get_helpdesk_service(request: Request) -> HelpdeskService:
    """Service built at startup."""
    return request.app.state.helpdesk_service


async def get_config_store(request: Request) -> ConfigStore:
    """Config store built at startup."""
    return request.app.state.config_store


async def get_filter_criteria(
    q: str = Query("", description="Free-text search over id, title, description, name, category, team"),
    ticket_status: str = Query(FILTER_ALL, alias="status", description="Status or All"),
    category: str = Query(FILTER_ALL, description="Category or All"),
    team: str = Query(FILTER_ALL, description="Team or All"),
    priority: str = Query(FILTER_ALL, description="P1..P4 or All")
) -> FilterCriteria:
    return FilterCriteria(q=q, status=ticket_status, category=category, team=team, priority=priority)


def _ticket_detail(service: HelpdeskService, ticket: Ticket) -> Dict[str, Any]:
    return {**ticket.to_record(), "sla": service.ticket_sla(ticket).to_dict()}


# ========== Portal ==========

@portal_router.get("/options", summary="Choices offered on the submission form")
async def get_portal_options(
    request: Request,
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    config = service.config
    options: Dict[str, Any] = {"categories": config.categories}
    if request.app.state.settings.requester_selects_team:
        options["teams"] = config.teams
    return options


@portal_router.post(
    "/tickets",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a ticket",
    description="""
    Submit a new support ticket.

    Title, description, name and contact value are required. Email contacts
    must look like an address, phone contacts need at least 10 digits.
    Every violation is reported at once.

    New tickets start `Open`, priority `P3`, team `Unassigned`.
    """,
    responses={
        422: {
            "model": ErrorResponse,
            "description": "Submission failed validation",
            "content": {"application/json": {"example": VALIDATION_ERROR_EXAMPLE}}
        }
    }
)
async def submit_ticket(
    data: TicketCreateDTO = Body(..., examples=[TICKET_SUBMIT_EXAMPLE]),
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    ticket = service.submit(data)
    return SubmissionResponse(
        message=f"Thanks! Your ticket was submitted. Save this ID: {ticket.id}",
        ticket=ticket.to_record()
    )


# ========== Admin: tickets ==========

@admin_router.get("/tickets", summary="Filtered ticket queue, newest first")
async def list_tickets(
    criteria: FilterCriteria = Depends(get_filter_criteria),
    service: HelpdeskService = Depends(get_helpdesk_service)
) -> List[Dict[str, Any]]:
    return [_ticket_detail(service, t) for t in service.list_tickets(criteria)]


@admin_router.get(
    "/tickets/{ticket_id}",
    summary="Ticket with SLA deadlines",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: str,
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    return _ticket_detail(service, service.get_ticket(ticket_id))


@admin_router.patch(
    "/tickets/{ticket_id}",
    summary="Update status, priority, team or other fields",
    responses={404: {"description": "Ticket not found"}}
)
async def update_ticket(
    ticket_id: str,
    changes: TicketUpdateDTO,
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    return _ticket_detail(service, service.update_ticket(ticket_id, changes))


@admin_router.delete(
    "/tickets/{ticket_id}",
    response_model=DeleteResponse,
    summary="Delete a ticket",
    description="Nothing is deleted unless `confirm=true`.",
    responses={404: {"description": "Ticket not found"}}
)
async def delete_ticket(
    ticket_id: str,
    confirm: bool = Query(False, description="Confirm the deletion"),
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    return DeleteResponse(deleted=service.delete_ticket(ticket_id, lambda prompt: confirm))


@admin_router.post(
    "/tickets/{ticket_id}/notes",
    status_code=status.HTTP_201_CREATED,
    summary="Add a note",
    responses={404: {"description": "Ticket not found"}, 422: {"model": ErrorResponse}}
)
async def add_note(
    ticket_id: str,
    data: NoteCreateDTO,
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    note = service.add_note(ticket_id, data.text, data.author)
    return note.model_dump(mode="json", by_alias=True, exclude_none=True)


@admin_router.delete(
    "/tickets/{ticket_id}/notes/{note_id}",
    response_model=DeleteResponse,
    summary="Delete a note",
    responses={404: {"description": "Ticket not found"}}
)
async def delete_note(
    ticket_id: str,
    note_id: str,
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    return DeleteResponse(deleted=service.delete_note(ticket_id, note_id))


@admin_router.get("/export", summary="Download the queue as CSV")
async def export_tickets(
    criteria: FilterCriteria = Depends(get_filter_criteria),
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    export = service.export(criteria)
    logger.info("Tickets exported", extra={"export_filename": export.filename})
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'}
    )


@admin_router.post(
    "/reset",
    response_model=ResetResponse,
    summary="Reset all tickets and config",
    description="Nothing is reset unless `confirm=true`."
)
async def reset_all(
    confirm: bool = Query(False, description="Confirm the reset"),
    service: HelpdeskService = Depends(get_helpdesk_service)
):
    return ResetResponse(reset=service.reset_all(lambda prompt: confirm))


# ========== Admin: config ==========

@admin_router.get("/config", summary="Categories, teams and SLA table")
async def get_config(store: ConfigStore = Depends(get_config_store)):
    return store.config.to_record()


@admin_router.put("/config", summary="Replace the config; malformed parts fall back to defaults")
async def replace_config(
    config: Dict[str, Any] = Body(...),
    store: ConfigStore = Depends(get_config_store)
):
    return store.replace(config).to_record()


@admin_router.post("/config/categories", summary="Add a category")
async def add_category(data: LabelDTO, store: ConfigStore = Depends(get_config_store)):
    return store.add_category(data.name).to_record()


@admin_router.delete("/config/categories/{name:path}", summary="Remove a category")
async def remove_category(name: str, store: ConfigStore = Depends(get_config_store)):
    return store.remove_category(name).to_record()


@admin_router.post("/config/teams", summary="Add a team")
async def add_team(data: LabelDTO, store: ConfigStore = Depends(get_config_store)):
    return store.add_team(data.name).to_record()


@admin_router.delete("/config/teams/{name:path}", summary="Remove a team; Unassigned cannot be removed")
async def remove_team(name: str, store: ConfigStore = Depends(get_config_store)):
    return store.remove_team(name).to_record()


@admin_router.patch(
    "/config/priorities/{priority}",
    summary="Change one priority's label or SLA minutes",
    responses={422: {"model": ErrorResponse}}
)
async def update_priority_sla(
    priority: str,
    data: PrioritySLAUpdateDTO,
    store: ConfigStore = Depends(get_config_store)
):
    config = store.set_priority_sla(
        priority,
        label=data.label,
        respond_minutes=data.respond_minutes,
        resolve_minutes=data.resolve_minutes
    )
    return config.to_record()
