"""
Pydantic schemas for the public interest endpoints.

Devices identify themselves with an opaque device_id; there is no account
behind an interest.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.src.services.event_status import EventStatus


class InterestRequest(BaseModel):
    """Body of a join request."""

    device_id: str = Field(..., min_length=1, max_length=255)

    @field_validator("device_id")
    @classmethod
    def validate_device_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("device_id cannot be empty")
        return v.strip()


class InterestResponse(BaseModel):
    """Result of a join or leave."""

    message: str
    interested_count: int
    removed: Optional[bool] = None


class InterestStatusResponse(BaseModel):
    is_interested: bool


class InterestCountResponse(BaseModel):
    interested_count: int


class InterestedEventResponse(BaseModel):
    """Summary of an event a device follows."""

    id: int
    title: str
    status: EventStatus
    start_time: datetime
    end_time: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    interested_count: int = 0
    church_id: Optional[int] = None
    church_name: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    interested_at: datetime


class InterestedEventListResponse(BaseModel):
    count: int
    events: List[InterestedEventResponse]
