"""
Ticket Domain Services
======================

Stateless business rules over tickets: submission validation and the
admin queue filter.
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Union

from quicket.config import ContactType, FILTER_ALL
from quicket.tickets.domain.entities import Ticket
from quicket.tickets.domain.value_objects import FilterCriteria

EMAIL_PATTERN = re.compile(r".+@.+\..+")
MIN_PHONE_DIGITS = 10

SEARCH_FIELDS = ("id", "title", "description", "name", "category", "team")


def validate_submission(
    title: str,
    description: str,
    name: str,
    contact_type: str,
    contact_value: str
) -> List[str]:
    """
    Check a self-service submission.

    Returns:
        Ordered list of violation messages; empty when the submission is valid
    """
    errors: List[str] = []
    if not title.strip():
        errors.append("Title is required.")
    if not description.strip():
        errors.append("Description is required.")
    if not name.strip():
        errors.append("Your name is required.")
    if not contact_value.strip():
        errors.append("Contact info is required.")

    if contact_type == ContactType.EMAIL:
        if not EMAIL_PATTERN.search(contact_value.strip()):
            errors.append("Please enter a valid email address.")
    else:
        digits = re.sub(r"\D", "", contact_value)
        if len(digits) < MIN_PHONE_DIGITS:
            errors.append(f"Please enter a valid phone number ({MIN_PHONE_DIGITS}+ digits).")
    return errors


def matches(ticket: Ticket, criteria: FilterCriteria) -> bool:
    """True when ``ticket`` satisfies every active predicate of ``criteria``."""
    q = criteria.q.lower()
    if q and not any(q in str(getattr(ticket, f)).lower() for f in SEARCH_FIELDS):
        return False
    if criteria.status != FILTER_ALL and ticket.status != criteria.status:
        return False
    if criteria.category != FILTER_ALL and ticket.category != criteria.category:
        return False
    if criteria.team != FILTER_ALL and ticket.team != criteria.team:
        return False
    if criteria.priority != FILTER_ALL and ticket.priority != criteria.priority:
        return False
    return True


def filter_tickets(
    tickets: Iterable[Ticket],
    criteria: Optional[Union[FilterCriteria, Mapping[str, Any]]] = None
) -> List[Ticket]:
    """
    Select the tickets matching ``criteria``, keeping their input order.

    Free text matches id, title, description, requester name, category or
    team (case-insensitive substring). Equality filters set to ``All`` are
    ignored. Active predicates combine with AND.
    """
    if criteria is None:
        criteria = FilterCriteria()
    elif not isinstance(criteria, FilterCriteria):
        criteria = FilterCriteria.model_validate(dict(criteria))
    return [t for t in tickets if matches(t, criteria)]
