"""
Actor context middleware and dependencies for authenticated routes.

Provides:
- ActorContext: Dataclass describing the authenticated account of a request
- get_actor_context: FastAPI dependency resolving the Bearer token to an actor

Role gates built on the actor context live in auth.py.

The actor context is derived from a Bearer access token (JWT). The role
is always read from the account row, never trusted from the token claims.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, HTTPException, status, Depends
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.db.database import get_db
from backend.src.models import Account, AccountRole, AccountStatus


logger = logging.getLogger(__name__)


@dataclass
class ActorContext:
    """
    Represents the authenticated actor of a request.

    Attributes:
        account_id: Internal account id (event ownership is checked against it)
        email: Account email address
        role: Account role (PASTOR or SUPER_ADMIN)
        church_id: Church owned by the account, if any

    Usage:
        @router.get("/events")
        async def list_events(
            actor: ActorContext = Depends(get_actor_context)
        ):
            return service.list_for_organizer(actor)
    """

    account_id: int
    email: str
    role: AccountRole
    church_id: Optional[int] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == AccountRole.SUPER_ADMIN

    @property
    def is_pastor(self) -> bool:
        return self.role == AccountRole.PASTOR

    def can_modify(self, organizer_id: int) -> bool:
        """Owners and super admins may mutate an event."""
        return self.is_super_admin or self.account_id == organizer_id

    @classmethod
    def from_account(cls, account: Account) -> "ActorContext":
        return cls(
            account_id=account.id,
            email=account.email,
            role=account.role,
            church_id=account.church.id if account.church else None,
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_actor_context(
    request: Request,
    db: Session = Depends(get_db)
) -> ActorContext:
    """
    FastAPI dependency to extract the actor context from the request.

    Args:
        request: FastAPI Request object
        db: Database session

    Returns:
        ActorContext for the token's account

    Raises:
        HTTPException 401: If the token is missing, invalid or expired
        HTTPException 403: If the account is not validated
    """
    # Import here to avoid circular imports
    from backend.src.services.token_service import TokenService

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise _unauthorized("Authentication required")

    settings = get_settings()
    if not settings.jwt_configured:
        logger.error("JWT_SECRET_KEY is not configured; rejecting authenticated request")
        raise _unauthorized("Authentication is not available")

    token_service = TokenService(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expiry_minutes=settings.jwt_token_expiry_minutes,
    )
    account_id = token_service.validate_token(auth_header[7:])
    if account_id is None:
        raise _unauthorized("Invalid or expired token")

    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise _unauthorized("Invalid or expired token")

    if account.status != AccountStatus.VALIDATED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not validated"
        )

    return ActorContext.from_account(account)
