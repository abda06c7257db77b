"""
Tickets Application DTOs
========================

Data Transfer Objects for the tickets API layer.

Request DTOs accept both camelCase (what the portal sends) and snake_case
keys. Submission fields are deliberately lenient: emptiness and contact
format are checked by ``validate_submission`` so that every problem is
reported at once instead of failing on the first.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quicket.config import ContactType
from quicket.tickets.domain import ContactTypeStr, PriorityStr, TicketStatusStr


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Request DTOs ==========

class TicketCreateDTO(_CamelModel):
    """Self-service submission."""
    title: str = ""
    description: str = ""
    name: str = Field(default="", description="Requester name")
    contact_type: ContactTypeStr = ContactType.EMAIL
    contact_value: str = ""
    category: Optional[str] = Field(None, description="Defaults to the first configured category")
    team: Optional[str] = Field(None, description="Kept only when requester team selection is enabled")


class TicketUpdateDTO(_CamelModel):
    """Admin changes to a ticket. Only the fields that are set are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    contact_type: Optional[ContactTypeStr] = None
    contact_value: Optional[str] = None
    category: Optional[str] = None
    team: Optional[str] = None
    status: Optional[TicketStatusStr] = None
    priority: Optional[PriorityStr] = None

    def changes(self) -> Dict[str, Any]:
        """Field-name keyed changes, without unset or null fields."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class NoteCreateDTO(_CamelModel):
    """Admin note."""
    text: str = ""
    author: Optional[str] = None


class LabelDTO(BaseModel):
    """A category or team name."""
    name: str = Field(..., description="Category or team label")


class PrioritySLAUpdateDTO(_CamelModel):
    """Partial change to one priority's SLA entry."""
    label: Optional[str] = None
    respond_minutes: Optional[float] = Field(None, ge=0)
    resolve_minutes: Optional[float] = Field(None, ge=0)


# ========== Response DTOs ==========

class SubmissionResponse(BaseModel):
    """Response to a successful submission."""
    message: str
    ticket: Dict[str, Any]


class DeleteResponse(BaseModel):
    """Outcome of a gated or lookup-dependent delete."""
    deleted: bool


class ResetResponse(BaseModel):
    """Outcome of a gated reset."""
    reset: bool


class ErrorResponse(BaseModel):
    """Validation failure."""
    detail: str
    errors: List[str] = Field(default_factory=list)
