"""
Rate limiting for the public API surface.

The public endpoints are unauthenticated, so requests are keyed by client
IP. Behind a reverse proxy the first X-Forwarded-For entry is the client;
otherwise the direct connection address is used.

The limiter is shared: main.py registers it on the app and its
RateLimitExceeded handler, routers decorate endpoints with
``@limiter.limit(...)`` (which requires a ``request: Request`` parameter).
"""

from fastapi import Request
from slowapi import Limiter

from backend.src.config.settings import get_settings


def get_client_ip(request: Request) -> str:
    """
    Extract the real client IP address from a request.

    Returns:
        Client IP address string, or "unknown" if unavailable
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First entry is the original client, the rest is the proxy chain
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def public_rate_limit() -> str:
    """Limit string applied to public endpoints (e.g. "60/minute")."""
    return get_settings().public_rate_limit


limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=get_settings().rate_limit_storage_uri,
)
