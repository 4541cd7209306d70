"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the outer layers (CLI, HTTP) can catch them uniformly and display
user-friendly messages.  ``status_code`` is the HTTP status an outer layer
should answer with.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    status_code = 500


class ValidationError(DomainException):
    """A business rule or invariant was violated (bad request)."""

    status_code = 400


class EntityNotFoundError(DomainException):
    """A requested entity does not exist, or is not visible to the caller."""

    status_code = 404


class InsufficientStockError(ValidationError):
    """One or more cart lines cannot be fulfilled.

    Carries the individual stock issues so callers can render per-item
    feedback instead of a single opaque failure.
    """

    def __init__(self, message: str, issues: list | None = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])


class InvalidTransitionError(ValidationError):
    """An order status change is not allowed from the current status."""


class ConcurrentModificationError(ValidationError):
    """The order changed between read and write; the transition was not applied."""


class OrderNumberConflictError(DomainException):
    """The generated order number is already taken by another order."""

    def __init__(self, order_number: str) -> None:
        super().__init__(f"Order number {order_number} is already in use")
        self.order_number = order_number


class ConfigurationError(DomainException):
    """A configuration value is missing or malformed."""
