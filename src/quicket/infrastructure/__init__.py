"""
Infrastructure Layer
=====================

Technical adapters shared by the bounded contexts:
- Key-value document storage
"""
