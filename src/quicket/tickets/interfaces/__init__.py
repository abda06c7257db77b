"""
Tickets Interfaces Layer
========================

FastAPI route handlers for the portal and the admin console.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from quicket.tickets.interfaces.controllers import admin_router, portal_router

__all__ = ["admin_router", "portal_router"]
