"""
Push target service for managing device push endpoints.

Provides business logic for registering device push tokens, resolving the
targets of an event's interested devices, and pruning tokens the push
gateways report as permanently invalid.
"""

import json
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.models import EventInterest, PushPlatform, PushTarget
from backend.src.services.exceptions import StorageError, ValidationError
from backend.src.services.push_gateway import is_expo_push_token
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class PushTargetService:
    """
    Service for managing device push targets.

    Handles target lifecycle:
    - Register (upsert by device_id)
    - Resolve targets of the devices interested in an event
    - Mark targets as used after a successful delivery
    - Remove invalid targets (DeviceNotRegistered, 404/410 Gone)
    """

    def __init__(self, db: Session):
        self.db = db

    def register(
        self,
        device_id: str,
        push_token: str,
        platform: PushPlatform,
        language_code: Optional[str] = None,
    ) -> PushTarget:
        """
        Create or replace the push target of a device.

        Args:
            device_id: Opaque device identifier
            push_token: Expo push token (ios/android) or Web Push
                subscription JSON (web)
            platform: Target platform
            language_code: Preferred notification language

        Returns:
            Created or updated PushTarget

        Raises:
            ValidationError: If the token does not match the platform format
            StorageError: If the upsert could not be persisted
        """
        try:
            platform = PushPlatform(platform)
        except ValueError:
            raise ValidationError(f"Unsupported platform: {platform}", field="platform")
        self._validate_token(push_token, platform)

        try:
            existing = (
                self.db.query(PushTarget)
                .filter(PushTarget.device_id == device_id)
                .first()
            )

            if existing:
                existing.push_token = push_token
                existing.platform = platform.value
                if language_code:
                    existing.language_code = language_code
                self.db.commit()
                self.db.refresh(existing)
                logger.info(
                    "Updated push target",
                    extra={"device_id": device_id, "platform": platform.value},
                )
                return existing

            target = PushTarget(
                device_id=device_id,
                push_token=push_token,
                platform=platform.value,
                language_code=language_code or "fr",
            )
            self.db.add(target)
            self.db.commit()
            self.db.refresh(target)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to register push target: {e}",
                extra={"device_id": device_id},
            )
            raise StorageError("register push token") from e

        logger.info(
            "Created push target",
            extra={"device_id": device_id, "platform": platform.value},
        )
        return target

    def _validate_token(self, push_token: str, platform: PushPlatform) -> None:
        if platform == PushPlatform.WEB:
            try:
                subscription = json.loads(push_token)
            except (TypeError, ValueError):
                raise ValidationError(
                    "Web push token must be a JSON subscription", field="push_token"
                )
            if (
                not isinstance(subscription, dict)
                or not subscription.get("endpoint")
                or not isinstance(subscription.get("keys"), dict)
            ):
                raise ValidationError(
                    "Web push subscription requires endpoint and keys",
                    field="push_token",
                )
            return

        if not is_expo_push_token(push_token):
            raise ValidationError("Invalid Expo push token", field="push_token")

    def targets_for_event(self, event_id: int) -> List[PushTarget]:
        """
        List the push targets of every device interested in an event.

        Args:
            event_id: Event id

        Returns:
            PushTarget instances (devices without a registered token are skipped)
        """
        return (
            self.db.query(PushTarget)
            .join(EventInterest, EventInterest.device_id == PushTarget.device_id)
            .filter(EventInterest.event_id == event_id)
            .order_by(PushTarget.id)
            .all()
        )

    def mark_used(self, tokens: Iterable[str], at: Optional[datetime] = None) -> int:
        """
        Update last_used_at after successful push deliveries.

        Args:
            tokens: Push tokens that were delivered to
            at: Delivery instant (defaults to now)

        Returns:
            Number of targets updated
        """
        tokens = list(set(tokens))
        if not tokens:
            return 0

        updated = (
            self.db.query(PushTarget)
            .filter(PushTarget.push_token.in_(tokens))
            .update({PushTarget.last_used_at: at or datetime.utcnow()}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def remove_invalid(self, tokens: Iterable[str]) -> int:
        """
        Remove targets whose tokens the push gateway rejected as permanently invalid.

        Args:
            tokens: Invalid push tokens

        Returns:
            Number of targets removed
        """
        tokens = list(set(tokens))
        if not tokens:
            return 0

        removed = (
            self.db.query(PushTarget)
            .filter(PushTarget.push_token.in_(tokens))
            .delete(synchronize_session=False)
        )
        self.db.commit()

        if removed > 0:
            logger.info(f"Removed {removed} invalid push targets")
        return removed
