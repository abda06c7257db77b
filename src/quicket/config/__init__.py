"""
Configuration Module
====================

Application settings and domain constants.

Settings are loaded from environment variables (and an optional ``.env``
file) using Pydantic. Domain constants describe the ticket vocabulary
shared by every bounded context.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="quicket", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Storage ==========
    database_url: str = Field(
        default="sqlite:///quicket.db",
        description="SQLAlchemy URL of the key-value document store"
    )
    tickets_storage_key: str = Field(
        default="quicket_tickets_v1",
        description="Key of the persisted ticket collection document"
    )
    config_storage_key: str = Field(
        default="quicket_config_v1",
        description="Key of the persisted helpdesk config document"
    )

    # ========== Helpdesk ==========
    ticket_id_prefix: str = Field(
        default="TCK",
        description="Prefix of generated ticket identifiers"
    )
    helpdesk_config_path: Optional[Path] = Field(
        default=Path("helpdesk_config.yaml"),
        description="YAML file seeding categories, teams and SLA minutes on first start"
    )
    requester_selects_team: bool = Field(
        default=False,
        description="Keep the team chosen on the portal instead of forcing Unassigned"
    )
    sla_warning_threshold_percent: int = Field(
        default=15,
        description="Remaining SLA percentage below which a clock is at risk",
        ge=0,
        le=100
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("ticket_id_prefix")
    @classmethod
    def validate_ticket_id_prefix(cls, v: str) -> str:
        """Ticket ids must stay within the ``^[A-Z]+-`` contract."""
        if not re.fullmatch(r"[A-Z]+", v):
            raise ValueError("ticket_id_prefix must be one or more uppercase ASCII letters")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class Priority(str):
    """Ticket priority levels, P1 being the most urgent."""
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"


class ContactType(str):
    """How the requester wants to be contacted."""
    EMAIL = "email"
    PHONE = "phone"


class SLAState(str):
    """SLA status states."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"
    MET = "met"


# Sentinels
FILTER_ALL = "All"
UNASSIGNED_TEAM = "Unassigned"
FALLBACK_CATEGORY = "Other"

DEFAULT_PRIORITY = Priority.P3


# ========== Lists for validation ==========

VALID_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD,
    TicketStatus.RESOLVED, TicketStatus.CLOSED
]
VALID_PRIORITIES = [Priority.P1, Priority.P2, Priority.P3, Priority.P4]
VALID_CONTACT_TYPES = [ContactType.EMAIL, ContactType.PHONE]
CLOSED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
