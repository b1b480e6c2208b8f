"""
Error taxonomy shared by the stores and services.

Every error carries a human message and an HTTP-like status code so callers
that surface failures (a CLI, an API layer) can map them without inspecting
the concrete class.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Malformed input caught before any write."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'", 422)


class NotFoundError(StorefrontError):
    def __init__(self, collection: str, record_id):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found", 404)


class TransportError(StorefrontError):
    """The persistence call failed or returned a non-success status."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message, status_code)


class ConflictError(StorefrontError):
    def __init__(self, record_id, expected: str, actual: str):
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Order {record_id} changed since it was read "
            f"(expected updatedAt {expected}, found {actual})",
            409,
        )


class InvalidTransitionError(StorefrontError):
    def __init__(self, record_id, current_status: str, target_status: str):
        self.record_id = record_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Order {record_id} cannot move from '{current_status}' "
            f"to '{target_status}'",
            409,
        )
