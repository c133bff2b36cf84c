"""
Notification service for event push notifications.

Provides business logic for:
- Composing the push message of an event notification kind
- Delivering it to every device interested in the event (Expo + Web Push)
- Pruning push targets the gateways report as permanently invalid
- Handing notification intents off the request path (NotificationQueue)

Delivery is fire-and-forget from the point of view of event mutations:
nothing in this module raises into the caller that triggered the
notification. Failures are logged and summarized.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, joinedload

from backend.src.config.settings import AppSettings, get_settings
from backend.src.models import Event, PushTarget
from backend.src.services.push_gateway import (
    DeliveryOutcome,
    ExpoPushGateway,
    PushMessage,
    WebPushGateway,
)
from backend.src.services.push_target_service import PushTargetService
from backend.src.utils.logging_config import get_logger


logger = get_logger("notifications")


class NotificationKind(str, enum.Enum):
    """Kinds of event notifications sent to interested devices."""
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    REMINDER = "reminder"
    NEW_INFO = "new_info"


@dataclass
class NotificationIntent:
    """
    Request to notify the devices interested in an event.

    Attributes:
        event_id: Event the notification is about
        kind: Notification kind (modified, cancelled, reminder, new_info)
        extra: Additional data merged into the push payload
    """

    event_id: int
    kind: str
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DispatchResult:
    """Summary of one notification dispatch."""

    sent: int = 0
    failed: int = 0
    removed: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


def compose_message(
    kind: str,
    event_title: str,
    church_name: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
    event_id: Optional[int] = None,
) -> PushMessage:
    """
    Build the push message of a notification kind.

    The data payload always carries eventId (as a string) and type, merged
    with the extra payload. For reminder and new_info an organizer message
    in extra["message"] replaces the default body.

    Args:
        kind: Notification kind; unknown kinds get a generic message
        event_title: Title of the event
        church_name: Hosting church, appended for modified/cancelled
        extra: Additional payload data
        event_id: Event id for the data payload

    Returns:
        PushMessage ready for the gateways
    """
    extra = extra or {}
    suffix = f" - {church_name}" if church_name else ""
    custom = extra.get("message")

    if kind == NotificationKind.MODIFIED.value:
        title = "Event updated"
        body = f'"{event_title}" has been updated{suffix}'
    elif kind == NotificationKind.CANCELLED.value:
        title = "Event cancelled"
        body = f'"{event_title}" has been cancelled{suffix}'
    elif kind == NotificationKind.REMINDER.value:
        title = "Event reminder"
        body = custom or f'"{event_title}" starts soon!'
    elif kind == NotificationKind.NEW_INFO.value:
        title = "New information"
        body = custom or f'"{event_title}" - new information available'
    else:
        title = "Notification"
        body = f'Update for "{event_title}"'

    data = {"eventId": str(event_id) if event_id is not None else None, "type": kind}
    data.update(extra)
    return PushMessage(title=title, body=body, data=data)


class NotificationService:
    """
    Service delivering event notifications to interested devices.

    Orchestrates one dispatch:
    1. Resolve the event and the push targets of its interested devices
    2. Compose the message for the notification kind
    3. Deliver through the gateway of each target platform
    4. Remove invalid targets, stamp last_used_at on delivered ones
    """

    def __init__(
        self,
        db: Session,
        expo_gateway: Optional[ExpoPushGateway] = None,
        web_gateway: Optional[WebPushGateway] = None,
    ):
        """
        Initialize notification service.

        Args:
            db: SQLAlchemy database session
            expo_gateway: Gateway for ios/android targets
            web_gateway: Gateway for web targets
        """
        self.db = db
        self.expo_gateway = expo_gateway or ExpoPushGateway()
        self.web_gateway = web_gateway or WebPushGateway()
        self.targets = PushTargetService(db)

    @classmethod
    def from_settings(cls, db: Session, settings: Optional[AppSettings] = None) -> "NotificationService":
        """Build a service with gateways configured from application settings."""
        settings = settings or get_settings()
        return cls(
            db,
            expo_gateway=ExpoPushGateway(
                url=settings.expo_push_url,
                access_token=settings.expo_access_token,
                timeout=settings.push_timeout_seconds,
            ),
            web_gateway=WebPushGateway(
                vapid_private_key=settings.vapid_private_key,
                vapid_claims=settings.vapid_claims,
            ),
        )

    def notify_event_interested(
        self,
        event_id: int,
        kind: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> DispatchResult:
        """
        Notify every device interested in an event.

        Args:
            event_id: Event id
            kind: Notification kind
            extra: Additional payload data

        Returns:
            DispatchResult with sent, failed and removed counts
        """
        result = DispatchResult()

        event = (
            self.db.query(Event)
            .options(joinedload(Event.church))
            .filter(Event.id == event_id)
            .first()
        )
        if not event:
            logger.warning(
                "Notification skipped: event not found",
                extra={"event_id": event_id, "kind": kind},
            )
            return result

        targets = self.targets.targets_for_event(event_id)
        if not targets:
            logger.debug(
                "No interested devices with a push target",
                extra={"event_id": event_id, "kind": kind},
            )
            return result

        message = compose_message(
            kind, event.title, event.church_name, extra, event_id=event.id
        )
        outcomes = self._deliver(targets, message)

        delivered = [o.token for o in outcomes if o.ok]
        invalid = [o.token for o in outcomes if o.invalid]
        result.sent = len(delivered)
        result.failed = len(outcomes) - len(delivered)

        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    f"Push delivery failed: {outcome.error}",
                    extra={
                        "event_id": event_id,
                        "kind": kind,
                        "token_prefix": outcome.token[:30],
                        "invalid": outcome.invalid,
                    },
                )

        result.removed = self.targets.remove_invalid(invalid)
        self.targets.mark_used(delivered)

        logger.info(
            "Push delivery summary",
            extra={
                "event_id": event_id,
                "kind": kind,
                "total": len(targets),
                "attempted": result.attempted,
                "sent": result.sent,
                "failed": result.failed,
                "removed": result.removed,
            },
        )
        return result

    def _deliver(self, targets: List[PushTarget], message: PushMessage) -> List[DeliveryOutcome]:
        mobile = [t.push_token for t in targets if not t.is_web]
        web = [t.push_token for t in targets if t.is_web]

        outcomes: List[DeliveryOutcome] = []
        if mobile:
            outcomes.extend(self.expo_gateway.send(mobile, message))
        if web:
            outcomes.extend(self.web_gateway.send(web, message))
        return outcomes


# ============================================================================
# Dispatch off the request path
# ============================================================================


def dispatch_notification(
    intent: NotificationIntent,
    session_factory: Callable[[], Session],
    settings: Optional[AppSettings] = None,
) -> Optional[DispatchResult]:
    """
    Run one notification intent with its own database session.

    Never raises: any failure is logged and swallowed, so that a broken
    push gateway or database hiccup cannot surface to the caller that
    queued the intent.

    Args:
        intent: Notification to deliver
        session_factory: Factory of fresh sessions (e.g. SessionLocal)
        settings: Application settings (defaults to get_settings())

    Returns:
        DispatchResult, or None if the dispatch failed
    """
    db = session_factory()
    try:
        service = NotificationService.from_settings(db, settings)
        return service.notify_event_interested(intent.event_id, intent.kind, intent.extra)
    except Exception as e:
        db.rollback()
        logger.error(
            f"Notification dispatch failed: {e}",
            extra={"event_id": intent.event_id, "kind": intent.kind},
            exc_info=True,
        )
        return None
    finally:
        db.close()


class NotificationQueue(ABC):
    """Hand-off point for notification intents."""

    @abstractmethod
    def enqueue(self, intent: NotificationIntent) -> None:
        """Schedule the intent for delivery; must not block on the push gateways."""


class BackgroundTaskNotificationQueue(NotificationQueue):
    """
    Queue backed by FastAPI BackgroundTasks.

    Intents run after the response has been sent, each with a fresh
    database session from session_factory.
    """

    def __init__(self, background_tasks: BackgroundTasks, session_factory: Callable[[], Session]):
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    def enqueue(self, intent: NotificationIntent) -> None:
        self.background_tasks.add_task(dispatch_notification, intent, self.session_factory)
        logger.debug(
            "Queued notification",
            extra={"event_id": intent.event_id, "kind": intent.kind},
        )
