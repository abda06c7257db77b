"""
Tickets Module
==============

Bounded Context for support tickets.

Responsibilities:
- Accept self-service submissions and validate them
- Migrate stored records into the canonical ticket shape on load
- Keep the ticket collection and helpdesk config persisted
- Filter the admin queue, export it as CSV, and attach notes
"""
