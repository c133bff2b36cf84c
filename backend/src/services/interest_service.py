"""
Interest service: device-scoped "I'm interested" declarations.

Provides business logic for joining and leaving an event, checking whether
a device is interested, reading the interested count and listing the
events a device follows.

Design:
- join and leave are idempotent; the (event_id, device_id) pair is unique
- events.interested_count is always recomputed with COUNT(*) over
  event_interests in the same transaction as the insert/delete, never
  incremented, so it cannot drift from the relation
- The event row is locked (SELECT ... FOR UPDATE) for the duration of the
  transaction, which serializes concurrent joins/leaves on one event
"""

from datetime import datetime
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.src.models import Event, EventInterest
from backend.src.services.event_status import Clock, utcnow
from backend.src.services.exceptions import (
    EventCancelledError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


DEFAULT_INTERESTED_LIMIT = 50
MAX_INTERESTED_LIMIT = 100
MAX_DEVICE_ID_LENGTH = 255


class InterestService:
    """
    Service for managing event interests.

    Usage:
        >>> service = InterestService(db_session)
        >>> count = service.join(42, "device-abc")
        >>> count, removed = service.leave(42, "device-abc")
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        """
        Initialize interest service.

        Args:
            db: SQLAlchemy database session
            clock: Source of the current instant (naive UTC)
        """
        self.db = db
        self.clock = clock

    @staticmethod
    def _clean_device_id(device_id: str) -> str:
        device_id = (device_id or "").strip()
        if not device_id:
            raise ValidationError("device_id is required", field="device_id")
        if len(device_id) > MAX_DEVICE_ID_LENGTH:
            raise ValidationError(
                f"device_id must be at most {MAX_DEVICE_ID_LENGTH} characters",
                field="device_id",
            )
        return device_id

    def _lock_event(self, event_id: int) -> Event:
        event = (
            self.db.query(Event)
            .filter(Event.id == event_id)
            .with_for_update()
            .first()
        )
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def _recount(self, event: Event) -> int:
        self.db.flush()
        count = (
            self.db.query(func.count(EventInterest.id))
            .filter(EventInterest.event_id == event.id)
            .scalar()
        ) or 0
        event.interested_count = count
        return count

    def _rollback_and_raise(self, operation: str, event_id: int, error: SQLAlchemyError) -> None:
        self.db.rollback()
        logger.error(
            f"Failed to {operation}: {error}",
            extra={"event_id": event_id, "operation": operation},
        )
        raise StorageError(operation) from error

    def join(self, event_id: int, device_id: str) -> int:
        """
        Declare a device's interest in an event.

        Joining twice leaves exactly one interest row.

        Args:
            event_id: Event id
            device_id: Opaque device identifier

        Returns:
            The interested count after the join

        Raises:
            ValidationError: If device_id is empty or too long
            NotFoundError: If event not found
            EventCancelledError: If the event is cancelled
            StorageError: If the write fails
        """
        device_id = self._clean_device_id(device_id)

        try:
            event = self._lock_event(event_id)
            if event.is_cancelled:
                raise EventCancelledError(event_id)

            exists = (
                self.db.query(EventInterest.id)
                .filter(
                    EventInterest.event_id == event_id,
                    EventInterest.device_id == device_id,
                )
                .first()
            )
            if not exists:
                self.db.add(EventInterest(event_id=event_id, device_id=device_id))

            count = self._recount(event)
            self.db.commit()
        except ServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self._rollback_and_raise("register interest", event_id, e)

        logger.info(
            "Interest registered",
            extra={"event_id": event_id, "device_id": device_id, "count": count},
        )
        return count

    def leave(self, event_id: int, device_id: str) -> Tuple[int, bool]:
        """
        Withdraw a device's interest in an event.

        Leaving when not interested is not an error. Leaving is allowed
        whatever the status of the event.

        Args:
            event_id: Event id
            device_id: Opaque device identifier

        Returns:
            Tuple of (interested count after the leave, whether a row was removed)

        Raises:
            ValidationError: If device_id is empty or too long
            NotFoundError: If event not found
            StorageError: If the write fails
        """
        device_id = self._clean_device_id(device_id)

        try:
            event = self._lock_event(event_id)
            removed = (
                self.db.query(EventInterest)
                .filter(
                    EventInterest.event_id == event_id,
                    EventInterest.device_id == device_id,
                )
                .delete(synchronize_session=False)
            ) > 0

            count = self._recount(event)
            self.db.commit()
        except ServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self._rollback_and_raise("remove interest", event_id, e)

        logger.info(
            "Interest removed" if removed else "Interest already absent",
            extra={"event_id": event_id, "device_id": device_id, "count": count},
        )
        return count, removed

    def is_interested(self, event_id: int, device_id: str) -> bool:
        """Check whether a device has declared interest in an event."""
        device_id = self._clean_device_id(device_id)
        return (
            self.db.query(EventInterest.id)
            .filter(
                EventInterest.event_id == event_id,
                EventInterest.device_id == device_id,
            )
            .first()
        ) is not None

    def get_count(self, event_id: int) -> int:
        """
        Get the interested count of an event.

        Raises:
            NotFoundError: If event not found
        """
        count = (
            self.db.query(Event.interested_count)
            .filter(Event.id == event_id)
            .first()
        )
        if count is None:
            raise NotFoundError("Event", event_id)
        return count[0] or 0

    def list_for_device(
        self,
        device_id: str,
        limit: int = DEFAULT_INTERESTED_LIMIT,
    ) -> List[Tuple[Event, datetime]]:
        """
        List the events a device is interested in that have not ended yet.

        Cancelled events are included (their status tells the device why
        they will not happen).

        Args:
            device_id: Opaque device identifier
            limit: Maximum number of events (1-100)

        Returns:
            List of (Event, interested_at) ordered by start time
        """
        device_id = self._clean_device_id(device_id)
        if not 1 <= limit <= MAX_INTERESTED_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {MAX_INTERESTED_LIMIT}", field="limit"
            )

        rows = (
            self.db.query(Event, EventInterest.created_at)
            .join(EventInterest, EventInterest.event_id == Event.id)
            .options(joinedload(Event.church), joinedload(Event.detail))
            .filter(
                EventInterest.device_id == device_id,
                Event.end_time >= self.clock(),
            )
            .order_by(Event.start_time.asc())
            .limit(limit)
            .all()
        )
        return [(event, interested_at) for event, interested_at in rows]
