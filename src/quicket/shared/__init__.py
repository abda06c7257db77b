"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (SLA and Tickets).

DO NOT add business logic from SLA or Tickets to the shared kernel.
"""
