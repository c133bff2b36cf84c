"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.event import (
    EventCreate,
    EventUpdate,
    EventCancelRequest,
    EventNotifyRequest,
    EventDetailResponse,
    EventResponse,
    EventListResponse,
    EventMutationResponse,
    PaginationMeta,
    MessageResponse,
    PublicEventResponse,
    PublicEventListResponse,
)
from backend.src.schemas.interest import (
    InterestRequest,
    InterestResponse,
    InterestStatusResponse,
    InterestCountResponse,
    InterestedEventResponse,
    InterestedEventListResponse,
)
from backend.src.schemas.push_target import (
    PushTargetRegister,
    PushTargetResponse,
)

__all__ = [
    "EventCreate",
    "EventUpdate",
    "EventCancelRequest",
    "EventNotifyRequest",
    "EventDetailResponse",
    "EventResponse",
    "EventListResponse",
    "EventMutationResponse",
    "PaginationMeta",
    "MessageResponse",
    "PublicEventResponse",
    "PublicEventListResponse",
    "InterestRequest",
    "InterestResponse",
    "InterestStatusResponse",
    "InterestCountResponse",
    "InterestedEventResponse",
    "InterestedEventListResponse",
    "PushTargetRegister",
    "PushTargetResponse",
]
