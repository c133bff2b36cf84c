"""
Event status calculation.

The status of an event is derived, never stored: it depends on the event's
time window, its cancellation marker and the current instant. Every place
that branches on status (serialization, list filters, mutation guards)
goes through this module.

Rules, evaluated in order:
- CANCELLED if cancelled_at is set (overrides the time window)
- UPCOMING  if now < start_time
- ONGOING   if start_time <= now <= end_time (both bounds inclusive)
- COMPLETED otherwise (now > end_time)
"""

import enum
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

from backend.src.models import Event


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Default clock: naive UTC, matching how timestamps are stored."""
    return datetime.utcnow()


class EventStatus(str, enum.Enum):
    """Computed display status of an event."""
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def compute_event_status(
    start_time: datetime,
    end_time: datetime,
    cancelled_at: Optional[datetime],
    now: datetime,
) -> EventStatus:
    """
    Compute the status of an event at instant ``now``.

    Pure and total: the result only depends on the four arguments.

    Example:
        >>> start = datetime(2026, 5, 1, 10)
        >>> compute_event_status(start, datetime(2026, 5, 1, 12), None, datetime(2026, 5, 1, 11))
        <EventStatus.ONGOING: 'ONGOING'>
    """
    if cancelled_at is not None:
        return EventStatus.CANCELLED
    if now < start_time:
        return EventStatus.UPCOMING
    if now <= end_time:
        return EventStatus.ONGOING
    return EventStatus.COMPLETED


def event_status(event: Event, now: datetime) -> EventStatus:
    """Compute the status of an Event instance at ``now``."""
    return compute_event_status(
        event.start_time, event.end_time, event.cancelled_at, now
    )


def has_ended(event: Event, now: datetime) -> bool:
    """True once the event's end time has passed, cancelled or not."""
    return now > event.end_time


def status_filter(status: EventStatus, now: datetime) -> ColumnElement:
    """
    SQL predicate selecting events whose computed status at ``now`` is ``status``.

    Mirrors compute_event_status so that list filters and serialized
    statuses never disagree.
    """
    if status == EventStatus.CANCELLED:
        return Event.cancelled_at.isnot(None)
    active = Event.cancelled_at.is_(None)
    if status == EventStatus.UPCOMING:
        return and_(active, Event.start_time > now)
    if status == EventStatus.ONGOING:
        return and_(active, Event.start_time <= now, Event.end_time >= now)
    return and_(active, Event.end_time < now)
