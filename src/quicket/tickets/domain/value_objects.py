"""
Ticket Value Objects
====================

Immutable values of the ticket domain:
- Ticket identifiers (``TCK-20240115-0007``) and note identifiers
- The helpdesk config (categories, teams, priority SLA table)
- Filter criteria for the admin queue
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quicket.config import FILTER_ALL, UNASSIGNED_TEAM
from quicket.sla.domain import PrioritySLA, normalize_priority_table
from quicket.shared.clock import utc_now


# ========== Identifiers ==========

TICKET_ID_PATTERN = re.compile(r"^[A-Z]+-\d{8}-\d{4}$")
DEFAULT_TICKET_ID_PREFIX = "TCK"


def generate_ticket_id(
    sequence: int,
    prefix: str = DEFAULT_TICKET_ID_PREFIX,
    at: Optional[datetime] = None
) -> str:
    """
    Format a ticket id as ``<PREFIX>-<YYYYMMDD>-<NNNN>``.

    The date is the generation instant (UTC) and ``NNNN`` is
    ``sequence mod 10000``, zero padded. Sequences wrap at 10000, so two
    tickets created on the same day can collide under high volume.
    """
    at = at or utc_now()
    return f"{prefix}-{at:%Y%m%d}-{sequence % 10000:04d}"


class TicketIdGenerator:
    """
    Hands out ticket ids from a monotonically increasing sequence.

    The sequence lives as long as the process.
    """

    def __init__(self, prefix: str = DEFAULT_TICKET_ID_PREFIX, start: int = 1):
        self.prefix = prefix
        self._next = start

    @classmethod
    def for_collection_size(cls, size: int, prefix: str = DEFAULT_TICKET_ID_PREFIX) -> "TicketIdGenerator":
        """Start after the tickets already stored."""
        return cls(prefix=prefix, start=(size % 10000) + 1)

    @property
    def next_sequence(self) -> int:
        return self._next

    def next_id(self, at: Optional[datetime] = None) -> str:
        sequence = self._next
        self._next += 1
        return generate_ticket_id(sequence, self.prefix, at)


def generate_note_id(existing_ids: Iterable[str], at: Optional[datetime] = None) -> str:
    """``N-<epoch millis>``, bumped by one millisecond until unique within the ticket."""
    taken = set(existing_ids)
    millis = int((at or utc_now()).timestamp() * 1000)
    while f"N-{millis}" in taken:
        millis += 1
    return f"N-{millis}"


# ========== Helpdesk config ==========

DEFAULT_CATEGORIES = ["Hardware", "Software", "Account/Access", "Networking", "Facilities", "Other"]
DEFAULT_TEAMS = ["Service Desk", "Desktop Support", "Networking", "Development", "Facilities", UNASSIGNED_TEAM]


def _clean_labels(value: Any) -> List[str]:
    """Trimmed, non-blank, de-duplicated strings in their original order."""
    if not isinstance(value, (list, tuple)):
        return []
    labels: List[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        item = item.strip()
        if item and item not in labels:
            labels.append(item)
    return labels


class HelpdeskConfig(BaseModel):
    """
    Categories, teams and SLA minutes of the helpdesk.

    Validation never fails: every malformed field falls back to its
    default, so ``HelpdeskConfig.model_validate`` accepts any mapping.
    """
    model_config = ConfigDict(frozen=True)

    categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    teams: List[str] = Field(default_factory=lambda: list(DEFAULT_TEAMS))
    priorities: Dict[str, PrioritySLA] = Field(default_factory=lambda: normalize_priority_table(None))

    @field_validator("categories", mode="before")
    @classmethod
    def validate_categories(cls, v: Any) -> List[str]:
        """Fall back to the default categories when nothing usable is left."""
        return _clean_labels(v) or list(DEFAULT_CATEGORIES)

    @field_validator("teams", mode="before")
    @classmethod
    def validate_teams(cls, v: Any) -> List[str]:
        """Fall back to the default teams; the Unassigned team is always present."""
        teams = _clean_labels(v) or list(DEFAULT_TEAMS)
        if UNASSIGNED_TEAM not in teams:
            teams.append(UNASSIGNED_TEAM)
        return teams

    @field_validator("priorities", mode="before")
    @classmethod
    def validate_priorities(cls, v: Any) -> Dict[str, PrioritySLA]:
        """Every priority P1..P4 present, each field defaulted on its own."""
        return normalize_priority_table(v)

    def to_record(self) -> dict:
        """Serialize to the persisted camelCase document shape."""
        return self.model_dump(mode="json", by_alias=True)


def normalize_config(partial: Any = None) -> HelpdeskConfig:
    """
    Normalize a stored or user-supplied config.

    Accepts a ``HelpdeskConfig``, a mapping, a JSON string, or anything
    else (treated as empty). Never raises and is idempotent.
    """
    if isinstance(partial, HelpdeskConfig):
        partial = partial.to_record()
    elif isinstance(partial, (str, bytes)):
        try:
            partial = json.loads(partial)
        except ValueError:
            partial = None

    data = partial if isinstance(partial, Mapping) else {}
    return HelpdeskConfig.model_validate({
        "categories": data.get("categories"),
        "teams": data.get("teams"),
        "priorities": data.get("priorities"),
    })


# ========== Filter criteria ==========

class FilterCriteria(BaseModel):
    """
    Admin queue filter.

    ``q`` is a free-text search; the equality filters are disabled by the
    ``All`` sentinel.
    """
    q: str = Field(default="", description="Case-insensitive free-text search")
    status: str = FILTER_ALL
    category: str = FILTER_ALL
    team: str = FILTER_ALL
    priority: str = FILTER_ALL

    @field_validator("q", mode="before")
    @classmethod
    def validate_query(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("status", "category", "team", "priority", mode="before")
    @classmethod
    def validate_equality_filter(cls, v: Any) -> str:
        """Missing or blank filters mean no constraint."""
        if not isinstance(v, str) or not v.strip():
            return FILTER_ALL
        return v
