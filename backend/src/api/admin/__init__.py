"""
Admin API module.

Contains endpoints for super admin operations:
- Event moderation (list, get, edit, cancel, reactivate, delete)
"""

from backend.src.api.admin.events import router as events_router

__all__ = ["events_router"]
