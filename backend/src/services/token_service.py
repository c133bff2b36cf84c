"""
Token service for account access tokens.

Handles:
- JWT access token generation for organizer and admin accounts
- Token decoding and claim validation

Design:
- Tokens are stateless JWTs signed with JWT_SECRET_KEY
- The subject claim carries the account id; role is informative only,
  the authoritative role is read from the account row on every request
- Tokens carry type="access" so that other JWTs signed with the same key
  are never accepted as credentials
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from backend.src.models import Account
from backend.src.services.exceptions import ValidationError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


TOKEN_TYPE = "access"
DEFAULT_TOKEN_EXPIRY_MINUTES = 1440


class TokenService:
    """
    Service for issuing and validating account access tokens.

    Usage:
        >>> service = TokenService(jwt_secret)
        >>> token = service.generate_token(account)
        >>> account_id = service.validate_token(token)
    """

    def __init__(
        self,
        jwt_secret: str,
        algorithm: str = "HS256",
        expiry_minutes: int = DEFAULT_TOKEN_EXPIRY_MINUTES,
    ):
        """
        Initialize token service.

        Args:
            jwt_secret: Secret key for JWT signing
            algorithm: JWT signing algorithm
            expiry_minutes: Lifetime of issued tokens
        """
        if not jwt_secret:
            raise ValidationError("JWT secret key is not configured", field="jwt_secret")
        self.jwt_secret = jwt_secret
        self.algorithm = algorithm
        self.expiry_minutes = expiry_minutes

    def generate_token(self, account: Account, now: Optional[datetime] = None) -> str:
        """
        Issue an access token for an account.

        Args:
            account: Account the token authenticates
            now: Issue instant (defaults to current UTC time)

        Returns:
            Encoded JWT string
        """
        issued_at = now or datetime.utcnow()
        payload: Dict[str, Any] = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "type": TOKEN_TYPE,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expiry_minutes),
        }
        token = jwt.encode(payload, self.jwt_secret, algorithm=self.algorithm)
        logger.debug(
            "Issued access token",
            extra={"account_id": account.id, "role": account.role.value},
        )
        return token

    def validate_token(self, token: str) -> Optional[int]:
        """
        Validate an access token and return the account id it carries.

        Args:
            token: JWT token string (from Authorization header)

        Returns:
            Account id if valid, None if invalid, expired or of the wrong type
        """
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Token validation failed: JWT error - {e}")
            return None

        if payload.get("type") != TOKEN_TYPE:
            logger.warning("Token validation failed: not an access token")
            return None

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Token validation failed: missing or malformed subject")
            return None
