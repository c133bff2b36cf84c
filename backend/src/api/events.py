"""
Organizer events API endpoints.

Provides endpoints for pastors managing their own events:
- Listing own events with a computed-status filter
- Creating events
- Getting, editing, cancelling and reactivating own events
- Sending ad-hoc reminder / new information notifications

Design:
- Uses dependency injection for services
- Service exceptions are mapped to HTTP status codes by to_http_exception
- Notifications to interested devices run as background tasks after the
  response; their failure never changes the response
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from backend.src.api.dependencies import get_event_service, to_http_exception
from backend.src.middleware.auth import require_pastor, ActorContext
from backend.src.schemas.event import (
    EventCancelRequest,
    EventCreate,
    EventMutationResponse,
    EventNotifyRequest,
    EventResponse,
    EventUpdate,
    MessageResponse,
)
from backend.src.services.event_service import EventService
from backend.src.services.event_status import EventStatus
from backend.src.services.exceptions import ServiceError
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/church",
    tags=["Church Events"],
)


def _internal_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


# ============================================================================
# API Endpoints
# ============================================================================


@router.get(
    "/my-events",
    response_model=List[EventResponse],
    summary="List own events",
    description="List the caller's events, newest start first",
)
async def list_my_events(
    status_filter: Optional[str] = Query(
        default=None,
        alias="status",
        description="UPCOMING, ONGOING, COMPLETED, CANCELLED or ALL",
    ),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> List[EventResponse]:
    """
    List the caller's events.

    Query Parameters:
        status: Computed-status filter; ALL or empty returns every event

    Example:
        GET /api/church/my-events?status=UPCOMING
    """
    event_status = None
    if status_filter and status_filter.upper() != "ALL":
        try:
            event_status = EventStatus(status_filter.upper())
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status filter: {status_filter}",
            )

    try:
        events = event_service.list_for_organizer(actor, status=event_status)
        return [EventResponse(**event_service.build_event_response(e)) for e in events]
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise _internal_error("list events")


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    event_data: EventCreate,
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Create an event owned by the caller.

    The event, its details and its translation languages are stored in one
    transaction.
    """
    try:
        event = event_service.create(actor, event_data)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error creating event: {str(e)}", exc_info=True)
        raise _internal_error("create event")


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Get own event",
)
async def get_event(
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """Get one of the caller's events (404 if missing or owned by someone else)."""
    try:
        event = event_service.get_owned(event_id, actor)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("get event")


@router.put(
    "/events/{event_id}",
    response_model=EventMutationResponse,
    summary="Edit own event",
)
async def update_event(
    event_data: EventUpdate,
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
    """
    Edit an event.

    Rejected with 409 when the event has ended or is cancelled.
    Interested devices receive a "modified" notification.
    """
    try:
        event = event_service.update(event_id, actor, event_data)
        return EventMutationResponse(
            message="Event updated",
            event=EventResponse(**event_service.build_event_response(event)),
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("update event")


@router.post(
    "/events/{event_id}/cancel",
    response_model=EventMutationResponse,
    summary="Cancel own event",
)
async def cancel_event(
    request_data: EventCancelRequest,
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
    """
    Cancel an upcoming event.

    Returns 400 if the reason is shorter than 10 characters, 409 if the
    event is already cancelled, ongoing or completed.
    """
    try:
        event = event_service.cancel(event_id, actor, request_data.cancellation_reason)
        return EventMutationResponse(
            message="Event cancelled",
            event=EventResponse(**event_service.build_event_response(event)),
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error cancelling event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("cancel event")


@router.post(
    "/events/{event_id}/reactivate",
    response_model=EventMutationResponse,
    summary="Reactivate own event",
)
async def reactivate_event(
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
    """Reactivate a cancelled event whose end time has not passed."""
    try:
        event = event_service.reactivate(event_id, actor)
        return EventMutationResponse(
            message="Event reactivated",
            event=EventResponse(**event_service.build_event_response(event)),
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error reactivating event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("reactivate event")


@router.post(
    "/events/{event_id}/notify",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Notify interested devices",
)
async def notify_event(
    request_data: EventNotifyRequest,
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_pastor),
    event_service: EventService = Depends(get_event_service),
) -> MessageResponse:
    """
    Queue a reminder or new_info notification for the event's interested devices.

    Returns 409 if the event is completed or cancelled.
    """
    try:
        event_service.send_notification(
            event_id, actor, request_data.kind, request_data.message
        )
        return MessageResponse(message="Notification queued")
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error notifying event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("send notification")
