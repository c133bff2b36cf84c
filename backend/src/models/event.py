"""
Event model for scheduled church events.

Events are organized by one account (usually a pastor, optionally on behalf
of a church). An event's display status is never stored: it is derived from
its time window and cancellation marker each time the event is read.

Design Rationale:
- Cancellation is an explicit, reversible state (cancelled_at/reason/by),
  never a deletion; the three columns are set and cleared together
- interested_count caches the cardinality of event_interests and is always
  recomputed from that table, never incremented in place
- Optional descriptive fields live in EventDetail (one-to-one)
- Translation languages are a replaceable set (EventTranslation)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, Float,
    ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from backend.src.models import Base


class Event(Base):
    """
    Scheduled event.

    Attributes:
        id: Primary key
        organizer_id: Account that created the event (FK accounts.id)
        church_id: Hosting church (FK churches.id, optional)
        title: Event title
        language_id: Speaker language
        start_time / end_time: Time window (UTC, end_time > start_time)
        latitude / longitude: Venue location (NULL = church location)

        Cancellation:
            cancelled_at: When the event was cancelled (NULL = active)
            cancellation_reason: Free-text reason shown to attendees
            cancelled_by: Account id of the actor who cancelled

        interested_count: Cached count of EventInterest rows
        created_at / updated_at: Timestamps

    Relationships:
        organizer: Owning Account
        church: Hosting Church
        detail: EventDetail (one-to-one, CASCADE)
        translations: EventTranslation rows (CASCADE)
        interests: EventInterest rows (CASCADE)
    """

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)

    organizer_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    church_id = Column(
        Integer,
        ForeignKey("churches.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    title = Column(String(255), nullable=False)
    language_id = Column(Integer, nullable=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, nullable=True)

    interested_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    organizer = relationship(
        "Account", back_populates="events", foreign_keys=[organizer_id]
    )
    church = relationship("Church", back_populates="events")
    detail = relationship(
        "EventDetail",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    translations = relationship(
        "EventTranslation",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    interests = relationship(
        "EventInterest",
        back_populates="event",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_events_time_window"),
        CheckConstraint(
            "(cancelled_at IS NULL AND cancellation_reason IS NULL AND cancelled_by IS NULL)"
            " OR (cancelled_at IS NOT NULL AND cancellation_reason IS NOT NULL"
            " AND cancelled_by IS NOT NULL)",
            name="ck_events_cancellation_fields",
        ),
        Index("idx_events_organizer_start", "organizer_id", "start_time"),
    )

    @property
    def is_cancelled(self) -> bool:
        """Check if the cancellation marker is set."""
        return self.cancelled_at is not None

    @property
    def church_name(self) -> Optional[str]:
        return self.church.church_name if self.church else None

    @property
    def effective_latitude(self) -> Optional[float]:
        """Venue latitude, falling back to the church location."""
        if self.latitude is not None:
            return self.latitude
        return self.church.latitude if self.church else None

    @property
    def effective_longitude(self) -> Optional[float]:
        """Venue longitude, falling back to the church location."""
        if self.longitude is not None:
            return self.longitude
        return self.church.longitude if self.church else None

    def mark_cancelled(self, reason: str, actor_id: int, at: datetime) -> None:
        """Set all three cancellation fields together."""
        self.cancelled_at = at
        self.cancellation_reason = reason
        self.cancelled_by = actor_id

    def clear_cancellation(self) -> None:
        """Clear all three cancellation fields together."""
        self.cancelled_at = None
        self.cancellation_reason = None
        self.cancelled_by = None

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"title='{self.title}', "
            f"start={self.start_time}, "
            f"cancelled={self.is_cancelled}"
            f")>"
        )

    def __str__(self) -> str:
        return f"{self.title} - {self.start_time}"


class EventDetail(Base):
    """
    Optional descriptive fields of an event (one row per event).

    Every column is nullable; booleans default to False on write.
    """

    __tablename__ = "event_details"

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        primary_key=True
    )

    description = Column(Text, nullable=True)
    address = Column(String(500), nullable=True)
    street_number = Column(String(20), nullable=True)
    street_name = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    speaker_name = Column(String(100), nullable=True)
    max_seats = Column(Integer, nullable=True)
    image_url = Column(String(1024), nullable=True)

    is_free = Column(Boolean, default=False, nullable=True)
    registration_link = Column(String(1024), nullable=True)
    youtube_live = Column(String(1024), nullable=True)

    has_parking = Column(Boolean, default=False, nullable=True)
    parking_capacity = Column(Integer, nullable=True)
    is_parking_free = Column(Boolean, default=False, nullable=True)
    parking_details = Column(String(500), nullable=True)

    event = relationship("Event", back_populates="detail")


class EventTranslation(Base):
    """Language into which an event is translated."""

    __tablename__ = "event_translations"

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        primary_key=True
    )
    language_id = Column(Integer, primary_key=True)

    event = relationship("Event", back_populates="translations")
