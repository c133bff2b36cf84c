"""
Application settings configuration for the LightChurch backend.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


EXPO_PUSH_SEND_URL = "https://exp.host/--/api/v2/push/send"


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        JWT_SECRET_KEY: Secret key for signing access tokens
        JWT_ALGORITHM: Signing algorithm (default: HS256)
        JWT_TOKEN_EXPIRY_MINUTES: Access token lifetime (default: 1440)
        EXPO_PUSH_URL: Expo push API endpoint
        EXPO_ACCESS_TOKEN: Optional Expo access token for authenticated sends
        PUSH_TIMEOUT_SECONDS: Timeout for push gateway HTTP calls (default: 10)
        VAPID_PUBLIC_KEY: Web Push VAPID public key (Base64url-encoded)
        VAPID_PRIVATE_KEY: Web Push VAPID private key (Base64url-encoded)
        VAPID_SUBJECT: VAPID subject identifier (mailto: or https: URL)
        RATE_LIMIT_STORAGE_URI: Storage backend URI for rate limiting (default: "memory://")
        PUBLIC_RATE_LIMIT: Rate limit for anonymous device endpoints (default: "60/minute")
        CORS_ORIGINS: Comma-separated list of allowed frontend origins
    """

    jwt_secret_key: str = Field(
        default="",
        validation_alias="JWT_SECRET_KEY",
        description="Secret key for signing access tokens. Must be at least 32 characters."
    )

    jwt_algorithm: str = Field(
        default="HS256",
        validation_alias="JWT_ALGORITHM",
    )

    jwt_token_expiry_minutes: int = Field(
        default=1440,
        validation_alias="JWT_TOKEN_EXPIRY_MINUTES",
        ge=1,
        le=60 * 24 * 30,
    )

    # Expo push gateway (mobile devices)
    expo_push_url: str = Field(
        default=EXPO_PUSH_SEND_URL,
        validation_alias="EXPO_PUSH_URL",
    )

    expo_access_token: str = Field(
        default="",
        validation_alias="EXPO_ACCESS_TOKEN",
        description="Optional Expo access token (enhanced push security)"
    )

    push_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="PUSH_TIMEOUT_SECONDS",
        gt=0,
    )

    # VAPID settings for browser Web Push
    vapid_public_key: str = Field(
        default="",
        validation_alias="VAPID_PUBLIC_KEY",
    )

    vapid_private_key: str = Field(
        default="",
        validation_alias="VAPID_PRIVATE_KEY",
    )

    vapid_subject: str = Field(
        default="",
        validation_alias="VAPID_SUBJECT",
        description="VAPID subject (mailto: or https: URL identifying the push sender)"
    )

    # Rate limiting storage backend
    #   "memory://"               - in-process, single worker
    #   "redis://localhost:6379"  - shared across workers
    rate_limit_storage_uri: str = Field(
        default="memory://",
        validation_alias="RATE_LIMIT_STORAGE_URI",
    )

    public_rate_limit: str = Field(
        default="60/minute",
        validation_alias="PUBLIC_RATE_LIMIT",
    )

    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="CORS_ORIGINS",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate that JWT secret key is sufficiently long."""
        if v and len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @property
    def jwt_configured(self) -> bool:
        """Check if JWT signing is configured."""
        return bool(self.jwt_secret_key)

    @property
    def vapid_configured(self) -> bool:
        """Check if VAPID keys are properly configured for Web Push."""
        return bool(self.vapid_public_key and self.vapid_private_key and self.vapid_subject)

    @property
    def vapid_claims(self) -> dict:
        """VAPID claims dict for pywebpush ({"sub": ...} or empty)."""
        return {"sub": self.vapid_subject} if self.vapid_subject else {}

    @property
    def cors_origins_list(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
