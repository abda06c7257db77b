"""
Startup Self-Check
==================

Exercises the pure domain rules once at startup and reports pass/fail.
Failures are logged and exposed on the health endpoint; they never stop
the service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from quicket.config import DEFAULT_PRIORITY, Priority, UNASSIGNED_TEAM, VALID_PRIORITIES
from quicket.core import ApplicationException
from quicket.sla.domain import DEFAULT_PRIORITY_SLAS, compute_deadlines, is_valid_minutes
from quicket.shared.infrastructure.logging import get_logger
from quicket.tickets.domain import (
    TICKET_ID_PATTERN, generate_ticket_id, migrate, normalize_config
)

logger = get_logger(__name__)

_REFERENCE_INSTANT = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class SelfCheckFailure(ApplicationException):
    """A domain rule did not hold during the self-check."""


def _expect(condition: object, detail: str) -> None:
    if not condition:
        raise SelfCheckFailure(detail)


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str = ""


@dataclass
class SelfCheckReport:
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failures(self) -> List[CheckResult]:
        return [c for c in self.checks if not c.passed]

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "checks": {c.name: "pass" if c.passed else f"fail: {c.detail}" for c in self.checks},
        }


def _check_ticket_id_format() -> None:
    ticket_id = generate_ticket_id(7)
    _expect(TICKET_ID_PATTERN.match(ticket_id), f"bad id format {ticket_id!r}")
    _expect(ticket_id.endswith("-0007"), f"bad sequence suffix {ticket_id!r}")
    _expect(generate_ticket_id(10007).endswith("-0007"), "sequence does not wrap at 10000")


def _check_default_config() -> None:
    config = normalize_config({"categories": [], "teams": []})
    _expect(config.categories, "no default categories")
    _expect(config.teams, "no default teams")
    _expect(UNASSIGNED_TEAM in config.teams, "Unassigned team missing")
    _expect(normalize_config(config) == config, "normalization is not idempotent")


def _check_default_sla_minutes() -> None:
    config = normalize_config(None)
    for priority in VALID_PRIORITIES:
        sla = config.priorities[priority]
        _expect(is_valid_minutes(sla.respond_minutes), f"{priority} respond minutes invalid")
        _expect(is_valid_minutes(sla.resolve_minutes), f"{priority} resolve minutes invalid")
        _expect(sla == DEFAULT_PRIORITY_SLAS[priority], f"{priority} differs from defaults")


def _check_deadline_arithmetic() -> None:
    config = normalize_config(None)
    p1 = compute_deadlines(Priority.P1, _REFERENCE_INSTANT, config)
    _expect(p1.respond_due - _REFERENCE_INSTANT == timedelta(minutes=60), "P1 respond deadline")
    _expect(p1.resolve_due - _REFERENCE_INSTANT == timedelta(minutes=1440), "P1 resolve deadline")
    fallback = compute_deadlines(None, _REFERENCE_INSTANT, config)
    explicit = compute_deadlines(DEFAULT_PRIORITY, _REFERENCE_INSTANT, config)
    _expect(fallback == explicit, "missing priority is not treated as P3")


def _check_migration_defaults() -> None:
    ticket = migrate({"id": "L-1", "title": "Legacy", "createdAt": _REFERENCE_INSTANT.isoformat()})
    _expect(ticket.priority == DEFAULT_PRIORITY, "priority not defaulted")
    _expect(ticket.team == UNASSIGNED_TEAM, "team not defaulted")
    _expect(ticket.contact_type == "email", "contact type not defaulted")
    _expect(ticket.notes == [], "notes not defaulted")
    _expect(migrate(ticket) == ticket, "migration is not idempotent")


CHECKS: List[tuple[str, Callable[[], None]]] = [
    ("ticket_id_format", _check_ticket_id_format),
    ("default_config", _check_default_config),
    ("default_sla_minutes", _check_default_sla_minutes),
    ("deadline_arithmetic", _check_deadline_arithmetic),
    ("migration_defaults", _check_migration_defaults),
]


def run_self_check() -> SelfCheckReport:
    """Run every check; never raises."""
    report = SelfCheckReport()
    for name, check in CHECKS:
        try:
            check()
        except Exception as e:  # a failing check must not stop startup
            report.checks.append(CheckResult(name, False, str(e) or type(e).__name__))
        else:
            report.checks.append(CheckResult(name, True))

    if report.passed:
        logger.info("Self-check passed", extra={"checks": len(report.checks)})
    else:
        logger.error(
            "Self-check failed",
            extra={"failed_checks": [c.name for c in report.failures]}
        )
    return report
