"""
Ticket Domain Entities
======================

Support tickets and the notes administrators attach to them.

Entities serialize with camelCase keys (``contactType``, ``createdAt``...),
the shape of the persisted ticket document.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quicket.config import ContactType, DEFAULT_PRIORITY, TicketStatus, UNASSIGNED_TEAM


# ========== Type Aliases for Literals ==========
TicketStatusStr = Literal["Open", "In Progress", "On Hold", "Resolved", "Closed"]
PriorityStr = Literal["P1", "P2", "P3", "P4"]
ContactTypeStr = Literal["email", "phone"]


class Note(BaseModel):
    """
    Admin note on a ticket.

    Notes are immutable once created; they can only be deleted.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1, description="Note id, unique within its ticket")
    text: str
    author: Optional[str] = None
    created_at: datetime


class Ticket(BaseModel):
    """
    Support ticket.

    ``id`` and ``created_at`` never change after creation; every other
    change stamps ``updated_at``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    name: str = Field(default="", description="Requester name")
    contact_type: ContactTypeStr = ContactType.EMAIL
    contact_value: str = ""
    category: str = ""
    team: str = UNASSIGNED_TEAM
    status: TicketStatusStr = TicketStatus.OPEN
    priority: PriorityStr = DEFAULT_PRIORITY
    created_at: datetime
    updated_at: datetime
    notes: List[Note] = Field(default_factory=list)

    def find_note(self, note_id: str) -> Optional[Note]:
        """Return the note with ``note_id`` or None."""
        return next((n for n in self.notes if n.id == note_id), None)

    def to_record(self) -> dict:
        """Serialize to the persisted camelCase document shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
