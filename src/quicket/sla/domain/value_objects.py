"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Each priority carries a label and two minute budgets: how long the desk has
to respond and how long it has to resolve. Deadlines are the ticket's
creation instant plus those budgets.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from quicket.config import (
    DEFAULT_PRIORITY, Priority, SLAState, VALID_PRIORITIES
)
from quicket.shared.clock import parse_timestamp, utc_now

Minutes = Union[int, float]

# One hundred years; keeps every deadline inside the datetime range.
MAX_SLA_MINUTES = 100 * 365 * 24 * 60


def is_valid_minutes(value: Any) -> bool:
    """Finite int or float between 0 and ``MAX_SLA_MINUTES``. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and 0 <= value <= MAX_SLA_MINUTES


def coerce_priority(value: Any) -> str:
    """Return ``value`` when it is one of P1..P4, otherwise the default priority."""
    return value if isinstance(value, str) and value in VALID_PRIORITIES else DEFAULT_PRIORITY


class PrioritySLA(BaseModel):
    """
    SLA budget of a single priority.

    Persisted with camelCase keys: ``{"label", "respondMinutes", "resolveMinutes"}``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    label: str = Field(..., min_length=1, description="Human readable priority name")
    respond_minutes: Minutes = Field(..., description="Minutes allowed until first response")
    resolve_minutes: Minutes = Field(..., description="Minutes allowed until resolution")

    @field_validator("respond_minutes", "resolve_minutes")
    @classmethod
    def validate_minutes(cls, v: Minutes) -> Minutes:
        """Budgets are finite, non-negative and bounded."""
        if not is_valid_minutes(v):
            raise ValueError(f"minutes must be a number between 0 and {MAX_SLA_MINUTES}")
        return v


DEFAULT_PRIORITY_SLAS: Dict[str, PrioritySLA] = {
    Priority.P1: PrioritySLA(label="Critical", respond_minutes=60, resolve_minutes=1440),
    Priority.P2: PrioritySLA(label="High", respond_minutes=240, resolve_minutes=4320),
    Priority.P3: PrioritySLA(label="Medium", respond_minutes=480, resolve_minutes=10080),
    Priority.P4: PrioritySLA(label="Low", respond_minutes=1440, resolve_minutes=20160),
}


def normalize_priority_entry(priority: str, raw: Any) -> PrioritySLA:
    """
    Normalize one priority entry field by field.

    Any field that is missing or malformed takes the default of that field
    only; the rest of the entry is kept.
    """
    default = DEFAULT_PRIORITY_SLAS[priority]
    if isinstance(raw, PrioritySLA):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        return default

    label = raw.get("label")
    label = label.strip() if isinstance(label, str) else ""

    respond = raw.get("respondMinutes", raw.get("respond_minutes"))
    resolve = raw.get("resolveMinutes", raw.get("resolve_minutes"))

    return PrioritySLA(
        label=label or default.label,
        respond_minutes=respond if is_valid_minutes(respond) else default.respond_minutes,
        resolve_minutes=resolve if is_valid_minutes(resolve) else default.resolve_minutes,
    )


def normalize_priority_table(raw: Any) -> Dict[str, PrioritySLA]:
    """Build a complete P1..P4 table from whatever was stored."""
    source = raw if isinstance(raw, Mapping) else {}
    return {
        priority: normalize_priority_entry(priority, source.get(priority))
        for priority in VALID_PRIORITIES
    }


@dataclass(frozen=True)
class SLADeadlines:
    """
    Respond and resolve deadlines of a ticket.

    Both are aware UTC datetimes.
    """
    priority: str
    created_at: datetime
    respond_due: datetime
    resolve_due: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "priority": self.priority,
            "respondDue": self.respond_due.isoformat(),
            "resolveDue": self.resolve_due.isoformat(),
        }


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class; all SLA arithmetic lives here.
    """

    @staticmethod
    def priority_sla(priority: Any, config: Any = None) -> PrioritySLA:
        """
        Look up the SLA budget of ``priority`` in ``config``.

        ``config`` may be a helpdesk config object exposing ``priorities``,
        a raw mapping with a ``priorities`` key, or None. Missing entries use
        the built-in defaults.
        """
        priority = coerce_priority(priority)

        if isinstance(config, Mapping):
            priorities = config.get("priorities")
        else:
            priorities = getattr(config, "priorities", None)

        entry = priorities.get(priority) if isinstance(priorities, Mapping) else None
        return normalize_priority_entry(priority, entry)

    @staticmethod
    def calculate_deadline(created_at: datetime, sla_minutes: Minutes) -> datetime:
        """Deadline ``sla_minutes`` after ``created_at``, capped at the last representable instant."""
        try:
            return created_at + timedelta(minutes=sla_minutes)
        except OverflowError:
            return datetime.max.replace(tzinfo=created_at.tzinfo)

    @classmethod
    def compute_deadlines(
        cls,
        priority: Any,
        created_at: Any,
        config: Any = None
    ) -> SLADeadlines:
        """
        Compute respond/resolve deadlines for a ticket.

        Args:
            priority: P1..P4; anything else is treated as P3
            created_at: Creation instant (datetime or ISO string); naive
                values are UTC and unparseable values fall back to now
            config: Helpdesk config providing the priority table

        Returns:
            SLADeadlines
        """
        priority = coerce_priority(priority)
        created = parse_timestamp(created_at) or utc_now()
        sla = cls.priority_sla(priority, config)

        return SLADeadlines(
            priority=priority,
            created_at=created,
            respond_due=cls.calculate_deadline(created, sla.respond_minutes),
            resolve_due=cls.calculate_deadline(created, sla.resolve_minutes),
        )

    @staticmethod
    def calculate_status(
        created_at: datetime,
        deadline: datetime,
        current_time: datetime,
        met_at: Optional[datetime] = None,
        warning_threshold_percent: int = 15
    ) -> str:
        """
        Calculate current SLA state.

        Args:
            created_at: When ticket was created
            deadline: The SLA deadline
            current_time: Current time for evaluation
            met_at: When the clock was satisfied (first response/resolution)
            warning_threshold_percent: Percentage threshold for "at_risk"

        Returns:
            One of the SLAState values
        """
        if met_at and met_at <= deadline:
            return SLAState.MET

        # Met late still counts as a breach
        reference = met_at or current_time
        remaining = (deadline - reference).total_seconds()
        total = (deadline - created_at).total_seconds()

        if remaining <= 0:
            return SLAState.BREACHED

        percentage = (remaining / total) * 100 if total > 0 else 0
        if percentage <= warning_threshold_percent:
            return SLAState.AT_RISK
        return SLAState.ON_TRACK

    @staticmethod
    def calculate_remaining_metrics(
        created_at: datetime,
        deadline: datetime,
        current_time: datetime,
        met_at: Optional[datetime] = None
    ) -> Tuple[float, float, bool]:
        """
        Calculate remaining time metrics.

        Returns:
            Tuple of (remaining_seconds, percentage_remaining, is_breached)
        """
        if met_at and met_at <= deadline:
            return 0.0, 0.0, False

        remaining = (deadline - (met_at or current_time)).total_seconds()
        total = (deadline - created_at).total_seconds()

        if total <= 0:
            percentage = 0.0
        else:
            percentage = max(0.0, min(100.0, (remaining / total) * 100))

        return max(0.0, remaining), percentage, remaining <= 0


def compute_deadlines(priority: Any, created_at: Any, config: Any = None) -> SLADeadlines:
    """Module-level shortcut for ``SLACalculator.compute_deadlines``."""
    return SLACalculator.compute_deadlines(priority, created_at, config)
