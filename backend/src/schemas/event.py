"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation and edit requests (core fields + optional details)
- Cancellation and ad-hoc notification requests
- Event API responses (single, organizer list, admin paginated list)

Design:
- All datetimes are stored and returned as naive UTC; timezone-aware input
  is converted to UTC on the way in
- status is computed on read and never accepted as input
- Detail fields are optional and validated with the same bounds on create
  and edit
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel, Field, HttpUrl, TypeAdapter, field_validator, model_validator
)

from backend.src.services.event_status import EventStatus


_HTTP_URL = TypeAdapter(HttpUrl)

URL_FIELDS = ("image_url", "registration_link", "youtube_live")

DETAIL_FIELDS = (
    "description",
    "address",
    "street_number",
    "street_name",
    "postal_code",
    "city",
    "speaker_name",
    "max_seats",
    "image_url",
    "is_free",
    "registration_link",
    "youtube_live",
    "has_parking",
    "parking_capacity",
    "is_parking_free",
    "parking_details",
)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ============================================================================
# Request Schemas
# ============================================================================


class EventDetailFields(BaseModel):
    """Optional descriptive fields shared by create and edit requests."""

    description: Optional[str] = Field(default=None, max_length=50000)
    address: Optional[str] = Field(default=None, max_length=500)
    street_number: Optional[str] = Field(default=None, max_length=20)
    street_name: Optional[str] = Field(default=None, max_length=255)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    city: Optional[str] = Field(default=None, max_length=100)
    speaker_name: Optional[str] = Field(default=None, max_length=100)
    max_seats: Optional[int] = Field(default=None, ge=0, le=100000)
    image_url: Optional[str] = Field(default=None, max_length=1024)

    is_free: Optional[bool] = Field(default=None)
    registration_link: Optional[str] = Field(default=None, max_length=1024)
    youtube_live: Optional[str] = Field(default=None, max_length=1024)

    has_parking: Optional[bool] = Field(default=None)
    parking_capacity: Optional[int] = Field(default=None, ge=0, le=10000)
    is_parking_free: Optional[bool] = Field(default=None)
    parking_details: Optional[str] = Field(default=None, max_length=500)

    @field_validator(*URL_FIELDS)
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Empty strings clear the field; anything else must be an http(s) URL."""
        if v is None or not v.strip():
            return None
        _HTTP_URL.validate_python(v.strip())
        return v.strip()

    def detail_values(self, only_set: bool = False) -> Dict[str, Any]:
        """Detail field values, optionally restricted to fields sent by the client."""
        data = self.model_dump(exclude_unset=only_set)
        return {key: data[key] for key in DETAIL_FIELDS if key in data}


class EventCreate(EventDetailFields):
    """
    Schema for creating an event.

    Required:
        title: Event title (3-255 characters)
        start_time: Start instant
        end_time: End instant (strictly after start_time)

    Optional:
        language_id: Speaker language
        translation_language_ids: Languages the event is translated into
        church_id: Hosting church (defaults to the organizer's church)
        latitude / longitude: Venue location (defaults to the church location)
        plus every EventDetailFields field
    """

    title: str = Field(..., min_length=3, max_length=255)
    language_id: Optional[int] = Field(default=None, ge=1)
    translation_language_ids: List[int] = Field(default_factory=list)
    church_id: Optional[int] = Field(default=None, ge=1)

    start_time: datetime
    end_time: datetime

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("title")
    @classmethod
    def validate_title_not_whitespace(cls, v: str) -> str:
        """Ensure title is not just whitespace."""
        if len(v.strip()) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_datetime(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_time_window(self) -> "EventCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Culte de louange",
                "start_time": "2026-03-15T09:00:00Z",
                "end_time": "2026-03-15T11:00:00Z",
                "language_id": 1,
                "translation_language_ids": [2],
                "speaker_name": "Pasteur Martin",
                "is_free": True,
            }
        }
    }


class EventUpdate(EventDetailFields):
    """
    Schema for editing an event.

    All fields are optional; only fields present in the request are applied.
    Sending translation_language_ids replaces the whole set. The time window
    is re-validated against the stored values when only one bound is sent.
    """

    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    language_id: Optional[int] = Field(default=None, ge=1)
    translation_language_ids: Optional[List[int]] = Field(default=None)

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("title")
    @classmethod
    def validate_title_not_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v.strip() if v is not None else v

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_time_window(self) -> "EventUpdate":
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time <= self.start_time
        ):
            raise ValueError("end_time must be after start_time")
        return self


class EventCancelRequest(BaseModel):
    """
    Cancellation request.

    The reason is checked by the service (at least 10 characters once
    trimmed) so that a too-short reason surfaces as a 400 with a readable
    message rather than a schema error.
    """

    cancellation_reason: str = Field(..., max_length=2000)


class EventNotifyRequest(BaseModel):
    """Ad-hoc notification sent by an organizer to interested devices."""

    kind: Literal["reminder", "new_info"]
    message: Optional[str] = Field(default=None, max_length=500)


# ============================================================================
# Response Schemas
# ============================================================================


class EventDetailResponse(BaseModel):
    """Descriptive fields of an event."""

    description: Optional[str] = None
    address: Optional[str] = None
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    speaker_name: Optional[str] = None
    max_seats: Optional[int] = None
    image_url: Optional[str] = None
    is_free: Optional[bool] = None
    registration_link: Optional[str] = None
    youtube_live: Optional[str] = None
    has_parking: Optional[bool] = None
    parking_capacity: Optional[int] = None
    is_parking_free: Optional[bool] = None
    parking_details: Optional[str] = None

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    """
    Event as returned by every surface.

    status is computed at serialization time from the time window and the
    cancellation marker.
    """

    id: int
    title: str
    status: EventStatus
    start_time: datetime
    end_time: datetime
    language_id: Optional[int] = None
    translation_language_ids: List[int] = Field(default_factory=list)

    organizer_id: int
    organizer_name: Optional[str] = None
    church_id: Optional[int] = None
    church_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None

    interested_count: int = 0
    detail: Optional[EventDetailResponse] = None

    created_at: datetime
    updated_at: datetime


class PaginationMeta(BaseModel):
    """Pagination block of admin list responses."""

    total: int
    page: int
    limit: int
    total_pages: int


class EventListResponse(BaseModel):
    """Paginated event list (admin surface)."""

    data: List[EventResponse]
    meta: PaginationMeta


class EventMutationResponse(BaseModel):
    """Result of an edit, cancel or reactivate."""

    message: str
    event: EventResponse


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class PublicEventResponse(EventResponse):
    """Event on the public map, with its distance from the caller's point."""

    distance_km: Optional[float] = None


class PublicEventListResponse(BaseModel):
    """Public map listing; has_more is set when the limit was reached."""

    count: int
    has_more: bool
    events: List[PublicEventResponse]
