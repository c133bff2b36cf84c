"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses. Messages are
human-readable: the frontend surfaces them directly to end users.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ForbiddenError(ServiceError):
    """Raised when the actor lacks ownership or role for a mutation."""

    def __init__(self, message: str = "You are not allowed to modify this event"):
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidStateError(ServiceError):
    """Raised when the event's computed status does not permit a mutation."""

    def __init__(self, message: str, event_id: Optional[int] = None):
        self.event_id = event_id
        super().__init__(message)


class AlreadyCancelledError(InvalidStateError):
    """Raised when cancelling an event that is already cancelled."""

    def __init__(self, event_id: Optional[int] = None):
        super().__init__("This event is already cancelled", event_id)


class NotCancelledError(InvalidStateError):
    """Raised when reactivating an event that is not cancelled."""

    def __init__(self, event_id: Optional[int] = None):
        super().__init__("This event is not cancelled", event_id)


class AlreadyCompletedError(InvalidStateError):
    """Raised when an event's end time has passed and it can no longer change."""

    def __init__(self, message: str = "This event has already ended", event_id: Optional[int] = None):
        super().__init__(message, event_id)


class EventCancelledError(InvalidStateError):
    """Raised when declaring interest in a cancelled event."""

    def __init__(self, event_id: Optional[int] = None):
        super().__init__("This event has been cancelled", event_id)


class StorageError(ServiceError):
    """
    Raised when persistence fails mid-transaction.

    The enclosing transaction has already been rolled back when this is
    raised. The message is deliberately generic.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Failed to {operation}. Please try again later.")
