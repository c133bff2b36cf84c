"""
Pydantic schemas for device push target registration.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from backend.src.models import PushPlatform


class PushTargetRegister(BaseModel):
    """
    Register or update the push target of a device.

    push_token is an Expo push token for ios/android and the JSON-encoded
    Web Push subscription for web.
    """

    device_id: str = Field(..., min_length=1, max_length=255)
    push_token: str = Field(..., min_length=1, max_length=4096)
    platform: PushPlatform
    language_code: Optional[str] = Field(default=None, min_length=2, max_length=10)

    model_config = {
        "json_schema_extra": {
            "example": {
                "device_id": "8f14e45f-ceea-467f-a0e6-3b1c2a9d7e10",
                "push_token": "ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]",
                "platform": "ios",
            }
        }
    }


class PushTargetResponse(BaseModel):
    device_id: str
    platform: PushPlatform
    language_code: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}
