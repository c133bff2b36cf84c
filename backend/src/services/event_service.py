"""
Event service: creation, listing and guarded mutation of events.

Provides business logic for creating, listing, retrieving, editing,
cancelling, reactivating and deleting events.

Design:
- Status is computed (event_status) and never stored; each mutation is
  allowed or rejected from the status computed at the instant the
  mutation runs
- The event row is read with SELECT ... FOR UPDATE inside the same
  transaction as the write, so two concurrent cancellations cannot both
  succeed (the second observes AlreadyCancelled)
- Every rejection or database failure rolls the transaction back before
  the error propagates
- Interested devices are notified after commit, through a NotificationQueue;
  a failure to queue is logged and never fails the mutation
"""

import math
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from backend.src.middleware.actor import ActorContext
from backend.src.models import (
    Account, AccountStatus, Church, Event, EventDetail, EventTranslation,
)
from backend.src.schemas.event import EventCreate, EventUpdate
from backend.src.services.event_status import (
    Clock,
    EventStatus,
    event_status,
    has_ended,
    status_filter,
    utcnow,
)
from backend.src.services.exceptions import (
    AlreadyCancelledError,
    AlreadyCompletedError,
    ForbiddenError,
    InvalidStateError,
    NotCancelledError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
)
from backend.src.services.geo_utils import haversine_km, radius_window
from backend.src.services.notification_service import (
    NotificationIntent,
    NotificationKind,
    NotificationQueue,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


MIN_CANCELLATION_REASON_LENGTH = 10

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DEFAULT_PUBLIC_LIMIT = 200
MAX_PUBLIC_LIMIT = 500
DEFAULT_RADIUS_KM = 50
MAX_RADIUS_KM = 1000

# Core columns an edit may change; detail fields are handled separately
CORE_FIELDS = ("title", "language_id", "start_time", "end_time", "latitude", "longitude")
NON_NULLABLE_FIELDS = ("title", "start_time", "end_time")


def like_pattern(search: str) -> str:
    """Substring pattern for ilike(..., escape="\\") with LIKE wildcards taken literally."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class EventService:
    """
    Service for managing events.

    Mutation rules (status computed at the instant of the mutation):
    - edit: UPCOMING or ONGOING only
    - cancel: UPCOMING only, with a reason of at least 10 characters
    - reactivate: CANCELLED events whose end time has not passed
    - delete: super admins only, unconditional

    Usage:
        >>> service = EventService(db_session, notifier=queue)
        >>> event = service.cancel(42, actor, "Pastor is ill, rescheduling")
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        notifier: Optional[NotificationQueue] = None,
    ):
        """
        Initialize event service.

        Args:
            db: SQLAlchemy database session
            clock: Source of the current instant (naive UTC)
            notifier: Queue receiving notification intents after commit
        """
        self.db = db
        self.clock = clock
        self.notifier = notifier

    # ========================================================================
    # Transactions and guards
    # ========================================================================

    @contextmanager
    def _transaction(self, operation: str, event_id: Optional[int] = None) -> Iterator[None]:
        """
        Run the body as one transaction, committed on success.

        Service errors (rejections) roll back and propagate unchanged;
        database errors roll back and surface as StorageError.
        """
        try:
            yield
            self.db.commit()
        except ServiceError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to {operation}: {e}",
                extra={"event_id": event_id, "operation": operation},
            )
            raise StorageError(operation) from e

    def _load_for_update(self, event_id: int) -> Event:
        event = (
            self.db.query(Event)
            .filter(Event.id == event_id)
            .with_for_update()
            .first()
        )
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def _check_can_modify(self, event: Event, actor: ActorContext) -> None:
        if not actor.can_modify(event.organizer_id):
            logger.warning(
                "Rejected mutation by non-owner",
                extra={"event_id": event.id, "account_id": actor.account_id},
            )
            raise ForbiddenError()

    def _notify(self, event_id: int, kind: NotificationKind, extra: Optional[Dict[str, Any]] = None) -> None:
        """Queue a notification; never raises into the mutation."""
        if self.notifier is None:
            return
        try:
            self.notifier.enqueue(
                NotificationIntent(event_id=event_id, kind=kind.value, extra=extra or {})
            )
        except Exception as e:
            logger.warning(
                f"Failed to queue {kind.value} notification: {e}",
                extra={"event_id": event_id, "kind": kind.value},
            )

    # ========================================================================
    # Reads
    # ========================================================================

    def _base_query(self):
        return self.db.query(Event).options(
            joinedload(Event.church),
            joinedload(Event.organizer),
            joinedload(Event.detail),
            joinedload(Event.translations),
        )

    def get_by_id(self, event_id: int) -> Event:
        """
        Get an event by id.

        Raises:
            NotFoundError: If event not found
        """
        event = self._base_query().filter(Event.id == event_id).first()
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def get_owned(self, event_id: int, actor: ActorContext) -> Event:
        """
        Get an event the actor may manage.

        Events of other organizers are reported as not found, so that the
        organizer surface does not leak their existence.

        Raises:
            NotFoundError: If event not found or not owned by the actor
        """
        event = self.get_by_id(event_id)
        if not actor.can_modify(event.organizer_id):
            raise NotFoundError("Event", event_id)
        return event

    def list_for_organizer(
        self,
        actor: ActorContext,
        status: Optional[EventStatus] = None,
    ) -> List[Event]:
        """
        List the actor's own events, newest start first.

        Args:
            actor: Organizer
            status: Optional computed-status filter (None = all)

        Returns:
            List of Event instances
        """
        query = self._base_query().filter(Event.organizer_id == actor.account_id)
        if status is not None:
            query = query.filter(status_filter(status, self.clock()))
        return query.order_by(Event.start_time.desc()).all()

    def list_all(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        status: Optional[EventStatus] = None,
    ) -> Tuple[List[Event], Dict[str, int]]:
        """
        List every event with pagination (admin surface).

        Args:
            page: 1-based page number
            limit: Page size (1-100)
            search: Substring matched against title, church name and
                organizer first/last name
            status: Optional computed-status filter

        Returns:
            Tuple of (events, meta) where meta has total, page, limit, total_pages
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        query = (
            self.db.query(Event)
            .outerjoin(Church, Event.church_id == Church.id)
            .outerjoin(Account, Event.organizer_id == Account.id)
        )

        if status is not None:
            query = query.filter(status_filter(status, self.clock()))

        if search:
            pattern = like_pattern(search)
            query = query.filter(
                or_(
                    Event.title.ilike(pattern, escape="\\"),
                    Church.church_name.ilike(pattern, escape="\\"),
                    Account.first_name.ilike(pattern, escape="\\"),
                    Account.last_name.ilike(pattern, escape="\\"),
                )
            )

        total = query.count()
        events = (
            query.options(
                joinedload(Event.church),
                joinedload(Event.organizer),
                joinedload(Event.detail),
                joinedload(Event.translations),
            )
            .order_by(Event.start_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        meta = {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }
        return events, meta

    def list_public(
        self,
        north: Optional[float] = None,
        south: Optional[float] = None,
        east: Optional[float] = None,
        west: Optional[float] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_km: float = DEFAULT_RADIUS_KM,
        search: Optional[str] = None,
        limit: int = DEFAULT_PUBLIC_LIMIT,
    ) -> List[Tuple[Event, Optional[float]]]:
        """
        List events shown on the public map: upcoming and ongoing, cancelled included.

        Events whose end time has passed and events of organizers whose
        account is not validated are never listed. The location of an event
        falls back to its church's location.

        Two geographic modes:
        - Bounding box (north, south, east, west all given): events inside
          the box; west > east means the box crosses the antimeridian.
          latitude/longitude, when also given, only order by distance.
        - Radius (latitude and longitude without a box): events within
          radius_km, nearest first.

        Args:
            search: Substring matched against title, church name and city
            limit: Maximum number of events (1-500)

        Returns:
            List of (event, distance_km) tuples; distance_km is None without
            a reference point

        Raises:
            ValidationError: If the box is partial or inverted, or the point
                is half given
        """
        limit = min(max(limit, 1), MAX_PUBLIC_LIMIT)
        radius_km = min(max(radius_km, 1), MAX_RADIUS_KM)

        box = (north, south, east, west)
        has_box = all(v is not None for v in box)
        if not has_box and any(v is not None for v in box):
            raise ValidationError(
                "north, south, east and west must be given together", field="north"
            )
        if has_box and south > north:
            raise ValidationError("south must not be greater than north", field="south")
        if (latitude is None) != (longitude is None):
            raise ValidationError(
                "latitude and longitude must be given together", field="latitude"
            )
        origin = (latitude, longitude) if latitude is not None else None

        event_lat = func.coalesce(Event.latitude, Church.latitude)
        event_lng = func.coalesce(Event.longitude, Church.longitude)

        query = (
            self.db.query(Event)
            .join(Account, Event.organizer_id == Account.id)
            .outerjoin(Church, Event.church_id == Church.id)
            .outerjoin(EventDetail, EventDetail.event_id == Event.id)
            .filter(
                Event.end_time >= self.clock(),
                Account.status == AccountStatus.VALIDATED,
            )
        )

        if has_box:
            query = query.filter(event_lat.between(south, north))
            if west <= east:
                query = query.filter(event_lng.between(west, east))
            else:
                query = query.filter(or_(event_lng >= west, event_lng <= east))
        elif origin is not None:
            (lat_min, lat_max), lng_range = radius_window(latitude, longitude, radius_km)
            query = query.filter(event_lat.between(lat_min, lat_max))
            if lng_range is not None:
                query = query.filter(event_lng.between(*lng_range))
            else:
                query = query.filter(event_lng.isnot(None))

        if search:
            pattern = like_pattern(search)
            query = query.filter(
                or_(
                    Event.title.ilike(pattern, escape="\\"),
                    Church.church_name.ilike(pattern, escape="\\"),
                    EventDetail.city.ilike(pattern, escape="\\"),
                )
            )

        query = query.options(
            joinedload(Event.church),
            joinedload(Event.detail),
            joinedload(Event.organizer),
            joinedload(Event.translations),
        ).order_by(Event.start_time.asc(), Event.id.asc())

        if origin is None:
            return [(event, None) for event in query.limit(limit).all()]

        # Exact distances are computed here; the SQL window is only a prefilter
        rows = []
        for event in query.all():
            distance = haversine_km(
                origin, (event.effective_latitude, event.effective_longitude)
            )
            if has_box or distance <= radius_km:
                rows.append((event, round(distance, 2)))
        rows.sort(key=lambda row: row[1])
        return rows[:limit]

    # ========================================================================
    # Create / edit
    # ========================================================================

    def create(self, actor: ActorContext, data: EventCreate) -> Event:
        """
        Create an event owned by the actor.

        The event, its detail row and its translation set are written in one
        transaction. The hosting church defaults to the actor's church.

        Raises:
            NotFoundError: If church_id does not exist
            StorageError: If the write fails
        """
        with self._transaction("create event"):
            church_id = data.church_id or actor.church_id
            if church_id is not None:
                church = self.db.query(Church).filter(Church.id == church_id).first()
                if not church:
                    raise NotFoundError("Church", church_id)

            event = Event(
                organizer_id=actor.account_id,
                church_id=church_id,
                title=data.title,
                language_id=data.language_id,
                start_time=data.start_time,
                end_time=data.end_time,
                latitude=data.latitude,
                longitude=data.longitude,
                interested_count=0,
            )
            self.db.add(event)
            self.db.flush()

            event.detail = EventDetail(**self._detail_defaults(data.detail_values()))
            self._replace_translations(event, data.translation_language_ids)

        logger.info(
            f"Created event: {event.id} - {event.title}",
            extra={"event_id": event.id, "account_id": actor.account_id},
        )
        return self.get_by_id(event.id)

    @staticmethod
    def _detail_defaults(values: Dict[str, Any]) -> Dict[str, Any]:
        for flag in ("is_free", "has_parking", "is_parking_free"):
            if values.get(flag) is None:
                values[flag] = False
        return values

    def _replace_translations(self, event: Event, language_ids: List[int]) -> None:
        """Make the translation set equal to language_ids."""
        wanted = set(language_ids)
        for translation in list(event.translations):
            if translation.language_id not in wanted:
                event.translations.remove(translation)
        existing = {t.language_id for t in event.translations}
        for language_id in sorted(wanted - existing):
            event.translations.append(EventTranslation(language_id=language_id))

    def update(self, event_id: int, actor: ActorContext, data: EventUpdate) -> Event:
        """
        Edit an event.

        Only fields present in the request are applied. A COMPLETED event is
        rejected before a CANCELLED one is checked, so a cancelled event whose
        end has passed reports that it has ended.

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor neither owns the event nor is super admin
            AlreadyCompletedError: If the event has ended
            InvalidStateError: If the event is cancelled
            ValidationError: If the merged time window is invalid
            StorageError: If the write fails
        """
        changes = data.model_dump(exclude_unset=True)

        with self._transaction("update event", event_id):
            event = self._load_for_update(event_id)
            self._check_can_modify(event, actor)

            now = self.clock()
            if has_ended(event, now):
                raise AlreadyCompletedError(
                    "Cannot modify an event that has already ended", event_id
                )
            if event.is_cancelled:
                raise InvalidStateError(
                    "Cannot modify a cancelled event. Reactivate it first.", event_id
                )

            start_time = changes.get("start_time") or event.start_time
            end_time = changes.get("end_time") or event.end_time
            if end_time <= start_time:
                raise ValidationError("end_time must be after start_time", field="end_time")

            for name in CORE_FIELDS:
                if name not in changes:
                    continue
                if changes[name] is None and name in NON_NULLABLE_FIELDS:
                    continue
                setattr(event, name, changes[name])

            detail_values = data.detail_values(only_set=True)
            if detail_values:
                if event.detail is None:
                    event.detail = EventDetail(**self._detail_defaults(detail_values))
                else:
                    for name, value in detail_values.items():
                        setattr(event.detail, name, value)

            if changes.get("translation_language_ids") is not None:
                self._replace_translations(event, changes["translation_language_ids"])

            if changes:
                event.updated_at = now

        if not changes:
            logger.debug("Empty edit, nothing to notify", extra={"event_id": event_id})
            return self.get_by_id(event_id)

        logger.info(
            f"Updated event: {event_id}",
            extra={"event_id": event_id, "account_id": actor.account_id},
        )
        self._notify(event_id, NotificationKind.MODIFIED)
        return self.get_by_id(event_id)

    # ========================================================================
    # Cancellation lifecycle
    # ========================================================================

    def cancel(self, event_id: int, actor: ActorContext, reason: Optional[str]) -> Event:
        """
        Cancel an upcoming event.

        The reason is trimmed and must be at least 10 characters; it is
        checked before the event is read. All three cancellation fields are
        set together.

        Raises:
            ValidationError: If the reason is too short
            NotFoundError: If event not found
            ForbiddenError: If the actor neither owns the event nor is super admin
            AlreadyCancelledError: If the event is already cancelled
            InvalidStateError: If the event is ongoing
            AlreadyCompletedError: If the event has ended
            StorageError: If the write fails
        """
        reason = (reason or "").strip()
        if len(reason) < MIN_CANCELLATION_REASON_LENGTH:
            raise ValidationError(
                f"Cancellation reason must be at least "
                f"{MIN_CANCELLATION_REASON_LENGTH} characters",
                field="cancellation_reason",
            )

        with self._transaction("cancel event", event_id):
            event = self._load_for_update(event_id)
            self._check_can_modify(event, actor)

            now = self.clock()
            status = event_status(event, now)
            if status == EventStatus.CANCELLED:
                raise AlreadyCancelledError(event_id)
            if status == EventStatus.ONGOING:
                raise InvalidStateError("Cannot cancel an ongoing event", event_id)
            if status == EventStatus.COMPLETED:
                raise AlreadyCompletedError(
                    "Cannot cancel an event that has already ended", event_id
                )

            event.mark_cancelled(reason, actor.account_id, now)

        logger.info(
            f"Cancelled event: {event_id}",
            extra={"event_id": event_id, "account_id": actor.account_id},
        )
        self._notify(event_id, NotificationKind.CANCELLED, {"reason": reason})
        return self.get_by_id(event_id)

    def reactivate(self, event_id: int, actor: ActorContext) -> Event:
        """
        Reactivate a cancelled event whose end time has not passed.

        All three cancellation fields are cleared together.

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor neither owns the event nor is super admin
            NotCancelledError: If the event is not cancelled
            AlreadyCompletedError: If the event has ended
            StorageError: If the write fails
        """
        with self._transaction("reactivate event", event_id):
            event = self._load_for_update(event_id)
            self._check_can_modify(event, actor)

            if not event.is_cancelled:
                raise NotCancelledError(event_id)
            if has_ended(event, self.clock()):
                raise AlreadyCompletedError(
                    "Cannot reactivate an event that has already ended", event_id
                )

            event.clear_cancellation()

        logger.info(
            f"Reactivated event: {event_id}",
            extra={"event_id": event_id, "account_id": actor.account_id},
        )
        return self.get_by_id(event_id)

    def delete(self, event_id: int, actor: ActorContext) -> None:
        """
        Hard-delete an event regardless of its status.

        Details, translations and interests are removed by cascade.

        Raises:
            ForbiddenError: If the actor is not a super admin
            NotFoundError: If event not found
            StorageError: If the delete fails
        """
        if not actor.is_super_admin:
            raise ForbiddenError("Only super admins can delete events")

        with self._transaction("delete event", event_id):
            event = self._load_for_update(event_id)
            self.db.delete(event)

        logger.info(
            f"Deleted event: {event_id}",
            extra={"event_id": event_id, "account_id": actor.account_id},
        )

    # ========================================================================
    # Ad-hoc notifications
    # ========================================================================

    def send_notification(
        self,
        event_id: int,
        actor: ActorContext,
        kind: str,
        message: Optional[str] = None,
    ) -> None:
        """
        Queue a reminder or new_info notification for an event's interested devices.

        Raises:
            NotFoundError: If event not found
            ForbiddenError: If the actor neither owns the event nor is super admin
            ValidationError: If kind is not reminder or new_info
            InvalidStateError: If the event is completed or cancelled
        """
        if kind not in (NotificationKind.REMINDER.value, NotificationKind.NEW_INFO.value):
            raise ValidationError(f"Unsupported notification kind: {kind}", field="kind")

        event = self.get_by_id(event_id)
        self._check_can_modify(event, actor)

        status = event_status(event, self.clock())
        if status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
            raise InvalidStateError(
                f"Cannot notify attendees of a {status.value.lower()} event", event_id
            )

        extra = {"message": message} if message else {}
        self._notify(event_id, NotificationKind(kind), extra)

    # ========================================================================
    # Serialization
    # ========================================================================

    def build_event_response(self, event: Event, now: Optional[datetime] = None) -> dict:
        """
        Build a response dictionary for an event.

        Computes the status at ``now`` (defaults to the service clock) and
        falls back to the church location when the event has none.

        Returns:
            Dictionary suitable for EventResponse schema
        """
        now = now or self.clock()

        detail_data = None
        if event.detail is not None:
            detail_data = {
                name: getattr(event.detail, name)
                for name in (
                    "description", "address", "street_number", "street_name",
                    "postal_code", "city", "speaker_name", "max_seats", "image_url",
                    "is_free", "registration_link", "youtube_live", "has_parking",
                    "parking_capacity", "is_parking_free", "parking_details",
                )
            }

        return {
            "id": event.id,
            "title": event.title,
            "status": event_status(event, now),
            "start_time": event.start_time,
            "end_time": event.end_time,
            "language_id": event.language_id,
            "translation_language_ids": sorted(t.language_id for t in event.translations),
            "organizer_id": event.organizer_id,
            "organizer_name": event.organizer.full_name if event.organizer else None,
            "church_id": event.church_id,
            "church_name": event.church_name,
            "latitude": event.effective_latitude,
            "longitude": event.effective_longitude,
            "cancelled_at": event.cancelled_at,
            "cancellation_reason": event.cancellation_reason,
            "cancelled_by": event.cancelled_by,
            "interested_count": event.interested_count or 0,
            "detail": detail_data,
            "created_at": event.created_at,
            "updated_at": event.updated_at,
        }
