"""
Shared API dependencies and service error mapping.

Provides:
- Service factories bound to the request's database session
- get_notification_queue: NotificationQueue running intents as background tasks
- to_http_exception: Translation of service exceptions to HTTP responses

Status mapping:
    NotFoundError       -> 404
    ForbiddenError      -> 403
    ValidationError     -> 400
    InvalidStateError   -> 409 (AlreadyCancelled, NotCancelled,
                                AlreadyCompleted, EventCancelled)
    StorageError        -> 500 (generic message)
"""

from fastapi import BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.src.db.database import SessionLocal, get_db
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)
from backend.src.services.interest_service import InterestService
from backend.src.services.notification_service import (
    BackgroundTaskNotificationQueue,
    NotificationQueue,
)
from backend.src.services.push_target_service import PushTargetService


# ============================================================================
# Service factories
# ============================================================================


def get_notification_queue(background_tasks: BackgroundTasks) -> NotificationQueue:
    """Queue notification intents to run after the response is sent."""
    return BackgroundTaskNotificationQueue(background_tasks, SessionLocal)


def get_event_service(
    db: Session = Depends(get_db),
    notifier: NotificationQueue = Depends(get_notification_queue),
) -> EventService:
    """Create EventService instance with database session and notifier."""
    return EventService(db=db, notifier=notifier)


def get_interest_service(db: Session = Depends(get_db)) -> InterestService:
    """Create InterestService instance with database session."""
    return InterestService(db=db)


def get_push_target_service(db: Session = Depends(get_db)) -> PushTargetService:
    """Create PushTargetService instance with database session."""
    return PushTargetService(db=db)


# ============================================================================
# Error mapping
# ============================================================================


def to_http_exception(error: ServiceError) -> HTTPException:
    """Translate a service exception into the HTTPException to raise."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.message)
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, StorageError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
