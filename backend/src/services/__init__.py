"""
Service layer for business logic.

Service classes are imported from their modules directly
(e.g. ``from backend.src.services.event_service import EventService``);
this package only re-exports the service exceptions.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    InvalidStateError,
    AlreadyCancelledError,
    NotCancelledError,
    AlreadyCompletedError,
    EventCancelledError,
    StorageError,
)

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "InvalidStateError",
    "AlreadyCancelledError",
    "NotCancelledError",
    "AlreadyCompletedError",
    "EventCancelledError",
    "StorageError",
]
