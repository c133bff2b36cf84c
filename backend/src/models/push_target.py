"""
PushTarget model for anonymous device push endpoints.

Stores the opaque push token a device registered, keyed by the device
identifier used for event interests. Devices are not owned by accounts.

Platforms:
- ios / android: Expo push token (ExponentPushToken[...])
- web: JSON-encoded Web Push subscription (endpoint + keys)
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text

from backend.src.models import Base


class PushPlatform(str, enum.Enum):
    """Platform tag of a push target."""
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class PushTarget(Base):
    """
    Push endpoint registered by one device.

    Attributes:
        device_id: Opaque device identifier (unique)
        push_token: Expo token or Web Push subscription JSON
        platform: ios, android or web
        language_code: Preferred language for notification text
        last_used_at: Timestamp of last successful push delivery

    Lifecycle:
        Upserted when a device registers (or re-registers) its token.
        Removed when the push gateway reports the token as permanently
        invalid (DeviceNotRegistered, 404/410 Gone).
    """

    __tablename__ = "push_targets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(255), nullable=False, unique=True, index=True)
    push_token = Column(Text, nullable=False)
    platform = Column(String(20), nullable=False)
    language_code = Column(String(10), nullable=True, default="fr")

    last_used_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    @property
    def is_web(self) -> bool:
        return self.platform == PushPlatform.WEB.value

    def __repr__(self) -> str:
        return f"<PushTarget(device_id='{self.device_id}', platform={self.platform})>"
