"""
Tickets Infrastructure Layer
============================

Store implementations over the key-value document storage:
- TicketRepository: the ticket collection
- ConfigStore: categories, teams and the priority SLA table
"""

from quicket.tickets.infrastructure.repositories import (
    DEFAULT_CONFIG_KEY,
    DEFAULT_TICKETS_KEY,
    ConfigStore,
    TicketRepository,
    load_config_seed,
)

__all__ = [
    "DEFAULT_CONFIG_KEY",
    "DEFAULT_TICKETS_KEY",
    "ConfigStore",
    "TicketRepository",
    "load_config_seed",
]
