"""
Public API endpoints for the mobile and web apps.

Provides unauthenticated, rate-limited endpoints for:
- Public map listing of upcoming and ongoing events
- Event detail with computed status
- Declaring and withdrawing interest in an event (device-scoped)
- Interest status and interested count
- Events a device is interested in
- Device push target registration

Devices are identified by an opaque device_id supplied by the client;
there is no account behind these endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from backend.src.api.dependencies import (
    get_event_service,
    get_interest_service,
    get_push_target_service,
    to_http_exception,
)
from backend.src.schemas.event import (
    EventResponse,
    PublicEventListResponse,
    PublicEventResponse,
)
from backend.src.schemas.interest import (
    InterestCountResponse,
    InterestedEventListResponse,
    InterestedEventResponse,
    InterestRequest,
    InterestResponse,
    InterestStatusResponse,
)
from backend.src.schemas.push_target import PushTargetRegister, PushTargetResponse
from backend.src.services.event_service import (
    DEFAULT_PUBLIC_LIMIT,
    DEFAULT_RADIUS_KM,
    MAX_PUBLIC_LIMIT,
    MAX_RADIUS_KM,
    EventService,
)
from backend.src.services.event_status import event_status
from backend.src.services.exceptions import ServiceError
from backend.src.services.interest_service import (
    DEFAULT_INTERESTED_LIMIT,
    MAX_INTERESTED_LIMIT,
    InterestService,
)
from backend.src.services.push_target_service import PushTargetService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.rate_limit import limiter, public_rate_limit


logger = get_logger("api")

router = APIRouter(
    prefix="/public",
    tags=["Public"],
)


def _internal_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


# ============================================================================
# Map listing and interested events (declared before /events/{event_id})
# ============================================================================


@router.get(
    "/events",
    response_model=PublicEventListResponse,
    summary="List events on the public map",
)
@limiter.limit(public_rate_limit)
async def list_events(
    request: Request,  # Required for rate limiter
    north: Optional[float] = Query(default=None, ge=-90, le=90),
    south: Optional[float] = Query(default=None, ge=-90, le=90),
    east: Optional[float] = Query(default=None, ge=-180, le=180),
    west: Optional[float] = Query(default=None, ge=-180, le=180),
    latitude: Optional[float] = Query(default=None, ge=-90, le=90),
    longitude: Optional[float] = Query(default=None, ge=-180, le=180),
    radius: int = Query(default=DEFAULT_RADIUS_KM, ge=1, le=MAX_RADIUS_KM, description="Radius in km"),
    search: Optional[str] = Query(default=None, max_length=100),
    limit: int = Query(default=DEFAULT_PUBLIC_LIMIT, ge=1, le=MAX_PUBLIC_LIMIT),
    event_service: EventService = Depends(get_event_service),
) -> PublicEventListResponse:
    """
    List upcoming and ongoing events (cancelled ones included) in a
    bounding box or around a point.

    Example:
        GET /api/public/events?north=49&south=48&east=3&west=2&search=culte
        GET /api/public/events?latitude=48.85&longitude=2.35&radius=20
    """
    try:
        rows = event_service.list_public(
            north=north,
            south=south,
            east=east,
            west=west,
            latitude=latitude,
            longitude=longitude,
            radius_km=radius,
            search=search,
            limit=limit,
        )
        now = event_service.clock()
        events = [
            PublicEventResponse(
                **event_service.build_event_response(event, now),
                distance_km=distance_km,
            )
            for event, distance_km in rows
        ]
        return PublicEventListResponse(
            count=len(events), has_more=len(events) == limit, events=events
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing public events: {str(e)}", exc_info=True)
        raise _internal_error("load events")


@router.get(
    "/events/interested",
    response_model=InterestedEventListResponse,
    summary="List events a device is interested in",
)
@limiter.limit(public_rate_limit)
async def list_interested_events(
    request: Request,  # Required for rate limiter
    device_id: str = Query(..., min_length=1, max_length=255),
    limit: int = Query(default=DEFAULT_INTERESTED_LIMIT, ge=1, le=MAX_INTERESTED_LIMIT),
    interest_service: InterestService = Depends(get_interest_service),
) -> InterestedEventListResponse:
    """
    List the events a device follows whose end time has not passed,
    ordered by start time.

    Example:
        GET /api/public/events/interested?device_id=abc&limit=20
    """
    try:
        rows = interest_service.list_for_device(device_id, limit=limit)
        now = interest_service.clock()
        events = [
            InterestedEventResponse(
                id=event.id,
                title=event.title,
                status=event_status(event, now),
                start_time=event.start_time,
                end_time=event.end_time,
                cancelled_at=event.cancelled_at,
                cancellation_reason=event.cancellation_reason,
                interested_count=event.interested_count or 0,
                church_id=event.church_id,
                church_name=event.church_name,
                city=event.detail.city if event.detail else None,
                latitude=event.effective_latitude,
                longitude=event.effective_longitude,
                interested_at=interested_at,
            )
            for event, interested_at in rows
        ]
        return InterestedEventListResponse(count=len(events), events=events)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error listing interested events: {str(e)}", exc_info=True)
        raise _internal_error("load interested events")


# ============================================================================
# Event detail and interest
# ============================================================================


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Get event detail",
)
@limiter.limit(public_rate_limit)
async def get_event(
    request: Request,  # Required for rate limiter
    event_id: int = Path(..., ge=1),
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.get_by_id(event_id)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error getting public event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("get event")


@router.post(
    "/events/{event_id}/interest",
    response_model=InterestResponse,
    summary="Declare interest in an event",
)
@limiter.limit(public_rate_limit)
async def join_event(
    request: Request,  # Required for rate limiter
    interest: InterestRequest,
    event_id: int = Path(..., ge=1),
    interest_service: InterestService = Depends(get_interest_service),
) -> InterestResponse:
    """
    Declare a device's interest. Idempotent.

    Returns 404 for an unknown event and 409 for a cancelled one.
    """
    try:
        count = interest_service.join(event_id, interest.device_id)
        return InterestResponse(message="Interest registered", interested_count=count)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error adding interest to event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("register interest")


@router.delete(
    "/events/{event_id}/interest",
    response_model=InterestResponse,
    summary="Withdraw interest in an event",
)
@limiter.limit(public_rate_limit)
async def leave_event(
    request: Request,  # Required for rate limiter
    event_id: int = Path(..., ge=1),
    device_id: str = Query(..., min_length=1, max_length=255),
    interest_service: InterestService = Depends(get_interest_service),
) -> InterestResponse:
    """Withdraw a device's interest. Idempotent; removed tells whether a row existed."""
    try:
        count, removed = interest_service.leave(event_id, device_id)
        return InterestResponse(
            message="Interest removed", interested_count=count, removed=removed
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error removing interest from event {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("remove interest")


@router.get(
    "/events/{event_id}/interested-count",
    response_model=InterestCountResponse,
    summary="Get interested count",
)
@limiter.limit(public_rate_limit)
async def get_interested_count(
    request: Request,  # Required for rate limiter
    event_id: int = Path(..., ge=1),
    interest_service: InterestService = Depends(get_interest_service),
) -> InterestCountResponse:
    try:
        return InterestCountResponse(interested_count=interest_service.get_count(event_id))
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching interested count of {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("fetch interested count")


@router.get(
    "/events/{event_id}/is-interested",
    response_model=InterestStatusResponse,
    summary="Check whether a device is interested",
)
@limiter.limit(public_rate_limit)
async def is_interested(
    request: Request,  # Required for rate limiter
    event_id: int = Path(..., ge=1),
    device_id: str = Query(..., min_length=1, max_length=255),
    interest_service: InterestService = Depends(get_interest_service),
) -> InterestStatusResponse:
    try:
        return InterestStatusResponse(
            is_interested=interest_service.is_interested(event_id, device_id)
        )
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error checking interest in {event_id}: {str(e)}", exc_info=True)
        raise _internal_error("check interest")


# ============================================================================
# Push targets
# ============================================================================


@router.post(
    "/push-tokens",
    response_model=PushTargetResponse,
    summary="Register a device push target",
)
@limiter.limit(public_rate_limit)
async def register_push_token(
    request: Request,  # Required for rate limiter
    registration: PushTargetRegister,
    push_target_service: PushTargetService = Depends(get_push_target_service),
) -> PushTargetResponse:
    """Create or update the push target of a device (keyed by device_id)."""
    try:
        target = push_target_service.register(
            device_id=registration.device_id,
            push_token=registration.push_token,
            platform=registration.platform,
            language_code=registration.language_code,
        )
        return PushTargetResponse.model_validate(target)
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error saving push token: {str(e)}", exc_info=True)
        raise _internal_error("register push token")
