"""
SLA Module
==========

Bounded Context for Service Level Agreement computation.

Responsibilities:
- Hold the per-priority respond/resolve minute budgets
- Calculate respond and resolve deadlines from a ticket's creation instant
- Evaluate whether each clock is on track, at risk, breached or met
"""
