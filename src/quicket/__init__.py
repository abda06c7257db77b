"""
Quicket Helpdesk
================

Self-service ticket submission and admin triage with per-priority SLA
deadlines and configurable categories and teams.

Bounded contexts:
- sla: deadline arithmetic and SLA state evaluation
- tickets: ids, config store, record migration, filtering, repository,
  export and the HTTP interface
"""

__version__ = "1.0.0"
