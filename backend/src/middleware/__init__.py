"""
Middleware components for the lightchurch backend.

This module provides:
- ActorContext: Dataclass representing the authenticated account of a request
- get_actor_context: FastAPI dependency for extracting the actor from requests
- require_pastor: FastAPI dependency for requiring organizer privileges
- require_super_admin: FastAPI dependency for requiring super admin privileges
"""

from backend.src.middleware.actor import ActorContext, get_actor_context
from backend.src.middleware.auth import require_pastor, require_super_admin

__all__ = [
    "ActorContext",
    "get_actor_context",
    "require_pastor",
    "require_super_admin",
]
