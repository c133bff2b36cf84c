"""
Role gates for authenticated API routes.

Provides:
- require_pastor: Organizer surface (pastors, and super admins acting as moderators)
- require_super_admin: Admin surface

Both build on get_actor_context (actor.py), which resolves the Bearer token
and rejects unvalidated accounts before any role is checked.
"""

from fastapi import Depends, HTTPException, status

from backend.src.middleware.actor import ActorContext, get_actor_context
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")


def _forbidden(actor: ActorContext, detail: str) -> HTTPException:
    logger.warning(
        detail,
        extra={"account_id": actor.account_id, "role": actor.role.value},
    )
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_pastor(actor: ActorContext = Depends(get_actor_context)) -> ActorContext:
    """
    Dependency for the organizer surface.

    Pastors manage their own events; super admins are accepted as well and
    bypass the ownership check in the services.

    Raises:
        HTTPException 403: If the account has neither role
    """
    if not (actor.is_pastor or actor.is_super_admin):
        raise _forbidden(actor, "Pastor privileges required")
    return actor


def require_super_admin(actor: ActorContext = Depends(get_actor_context)) -> ActorContext:
    """
    Dependency that requires super admin privileges.

    Example:
        @router.delete("/{event_id}")
        async def delete_event(
            actor: ActorContext = Depends(require_super_admin)
        ):
            service.delete(event_id, actor)

    Raises:
        HTTPException 403: If the account is not a super admin
    """
    if not actor.is_super_admin:
        raise _forbidden(actor, "Super admin privileges required")
    return actor


__all__ = [
    "require_pastor",
    "require_super_admin",
    "ActorContext",
]
