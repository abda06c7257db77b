"""
Core Exceptions
================

Custom exceptions for the helpdesk following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. Nothing in the domain layer is
fatal: lookups that miss are no-ops and malformed documents degrade to
defaults, so the only error most callers see is ``ValidationException``.
"""

from typing import List, Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """
    Exception for validation errors.

    Carries the ordered list of human-readable violations so a form can show
    every problem at once.
    """

    def __init__(self, errors: List[str], details: Optional[dict] = None):
        self.errors = list(errors)
        message = " \n".join(self.errors) or "Validation failed"
        super().__init__(message, {**(details or {}), "errors": self.errors})


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors, such as an unreadable seed file."""
