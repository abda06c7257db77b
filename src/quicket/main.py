"""
Quicket Helpdesk - Main Application
===================================

Internal IT helpdesk: a self-service portal where staff submit tickets and
an admin console where the desk triages, annotates and exports them.

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services, DTOs, export, self-check
- Domain: Tickets, helpdesk config, migration, SLA arithmetic
- Infrastructure: Key-value document storage
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from quicket.config import Settings, settings
from quicket.infrastructure.storage import KeyValueStore, SQLAlchemyKeyValueStore
from quicket.shared.api.middleware import (
    CorrelationIDMiddleware, LoggingMiddleware, register_exception_handlers
)
from quicket.shared.infrastructure.logging import get_logger, setup_logging
from quicket.tickets.application import HelpdeskService, run_self_check
from quicket.tickets.infrastructure import ConfigStore, TicketRepository
from quicket.tickets.interfaces import admin_router, portal_router

logger = get_logger(__name__)


def create_app(
    store: Optional[KeyValueStore] = None,
    app_settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        store: Document store to use; by default a SQLAlchemy store on
            ``database_url`` is opened at startup and closed at shutdown
        app_settings: Settings override, mainly for tests
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """
        STARTUP:
        1. Setup structured logging
        2. Open the document store
        3. Load the helpdesk config and the ticket collection
        4. Run the self-check

        SHUTDOWN:
        1. Close the document store
        """
        setup_logging(app_settings.log_level, app_settings.environment)
        logger.info("Starting Quicket", extra={
            "version": app_settings.app_version,
            "environment": app_settings.environment
        })

        document_store = store or SQLAlchemyKeyValueStore(
            app_settings.database_url, echo=app_settings.debug
        )
        config_store = ConfigStore(
            document_store,
            storage_key=app_settings.config_storage_key,
            seed_path=app_settings.helpdesk_config_path
        )
        tickets = TicketRepository(
            document_store,
            storage_key=app_settings.tickets_storage_key,
            config_store=config_store,
            id_prefix=app_settings.ticket_id_prefix,
            requester_selects_team=app_settings.requester_selects_team
        )

        app.state.settings = app_settings
        app.state.config_store = config_store
        app.state.helpdesk_service = HelpdeskService(
            tickets,
            config_store,
            warning_threshold_percent=app_settings.sla_warning_threshold_percent
        )
        app.state.self_check = run_self_check()

        logger.info("Quicket started successfully")

        yield  # Application runs here

        logger.info("Shutting down Quicket")
        if store is None:
            document_store.close()
        logger.info("Quicket shutdown complete")

    app = FastAPI(
        title="Quicket Helpdesk API",
        description="""
        ## Internal IT Helpdesk

        ### Self-Service Portal
        - `POST /portal/tickets` - Submit a ticket
        - `GET /portal/options` - Categories (and teams) offered on the form

        ### Admin Console
        - `GET /admin/tickets` - Filtered queue with SLA state
        - `GET|PATCH|DELETE /admin/tickets/{id}` - Inspect, update, delete
        - `POST /admin/tickets/{id}/notes` - Add a note
        - `GET /admin/export` - CSV export
        - `GET|PUT /admin/config` - Categories, teams and SLA minutes
        - `POST /admin/reset?confirm=true` - Wipe tickets and config

        **SLA Time Limits (Minutes, respond / resolve):**

        | Priority | Label | Respond | Resolve |
        |----------|-------|---------|---------|
        | P1 | Critical | 60 | 1440 |
        | P2 | High | 240 | 4320 |
        | P3 | Medium | 480 | 10080 |
        | P4 | Low | 1440 | 20160 |
        """,
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    register_exception_handlers(app)

    app.include_router(portal_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service health and self-check results",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {"ticket_id_format": "pass", "default_config": "pass"}
                    }
                }
            }
        }
    })
    async def health_check(request: Request):
        """
        Health check endpoint for load balancers and orchestrators.

        A failed self-check marks the service degraded; it keeps serving.
        """
        report = request.app.state.self_check
        return {
            "status": "healthy" if report.passed else "degraded",
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "checks": report.to_dict()["checks"]
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Quicket Helpdesk",
            "version": app_settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "modules": {
                "portal": {"prefix": "/portal"},
                "admin": {"prefix": "/admin"}
            }
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quicket.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
