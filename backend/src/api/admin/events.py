"""
Admin Events API endpoints for super admin event moderation.

Provides endpoints for listing, inspecting, editing, cancelling,
reactivating and deleting any event. All endpoints require super admin
privileges.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from backend.src.api.dependencies import get_event_service, to_http_exception
from backend.src.middleware.auth import require_super_admin, ActorContext
from backend.src.schemas.event import (
    EventCancelRequest,
    EventListResponse,
    EventMutationResponse,
    EventResponse,
    EventUpdate,
    MessageResponse,
    PaginationMeta,
)
from backend.src.services.event_service import EventService, MAX_PAGE_SIZE
from backend.src.services.event_status import EventStatus
from backend.src.services.exceptions import ServiceError
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/events", tags=["Admin - Events"])


def _internal_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


# ============================================================================
# Event Moderation Endpoints (Super Admin Only)
# ============================================================================


@router.get(
    "",
    response_model=EventListResponse,
    summary="List all events",
)
async def list_events(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, max_length=255),
    status_filter: Optional[str] = Query(
        default=None,
        alias="status",
        description="UPCOMING, ONGOING, COMPLETED, CANCELLED or ALL",
    ),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    """
    List every event with pagination.

    search matches the title, the church name and the organizer's first or
    last name.
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
        events, meta = event_service.list_all(
            page=page, limit=limit, search=search, status=event_status
        )
        return EventListResponse(
            data=[EventResponse(**event_service.build_event_response(e)) for e in events],
            meta=PaginationMeta(**meta),
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise _internal_error("list events")


@router.get("/{event_id}", response_model=EventResponse, summary="Get event")
async def get_event(
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.get_by_id(event_id)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("get event")


@router.put("/{event_id}", response_model=EventMutationResponse, summary="Edit event")
async def update_event(
    event_data: EventUpdate,
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
    """Edit any event; the same status rules as for organizers apply."""
    try:
        event = event_service.update(event_id, actor, event_data)
        logger.info(
            "Admin edited event",
            extra={"event_id": event_id, "admin_id": actor.account_id},
        )
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
    "/{event_id}/cancel",
    response_model=EventMutationResponse,
    summary="Cancel event",
)
async def cancel_event(
    request_data: EventCancelRequest,
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
    """Cancel any upcoming event; ongoing and completed events cannot be cancelled."""
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
    "/{event_id}/reactivate",
    response_model=EventMutationResponse,
    summary="Reactivate event",
)
async def reactivate_event(
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> EventMutationResponse:
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


@router.delete("/{event_id}", response_model=MessageResponse, summary="Delete event")
async def delete_event(
    event_id: int = Path(..., ge=1),
    actor: ActorContext = Depends(require_super_admin),
    event_service: EventService = Depends(get_event_service),
) -> MessageResponse:
    """Hard-delete an event whatever its status (interests are removed with it)."""
    try:
        event_service.delete(event_id, actor)
        return MessageResponse(message="Event deleted")
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("delete event")
