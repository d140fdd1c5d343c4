"""Bearer token verification.

Users sign in through the web app's auth provider; this service only
verifies the access tokens it issues. ``create_access_token`` exists for
local development and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from ..config import get_settings


class AuthServiceError(Exception):
    """Base exception for auth service errors."""

    pass


class TokenExpiredError(AuthServiceError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(AuthServiceError):
    """Raised when a token is invalid."""

    pass


class AuthService:
    """Verifies JWT access tokens with the shared signing secret."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        settings = get_settings()
        self._secret_key = secret_key or settings.jwt_secret_key
        self._algorithm = algorithm or settings.jwt_algorithm
        self._audience = audience if audience is not None else settings.jwt_audience
        self._expire_minutes = settings.access_token_expire_minutes

    def create_access_token(self, user_id: str, email: Optional[str] = None, **claims: Any) -> str:
        """Create a signed access token for ``user_id``."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
            **claims,
        }
        if email:
            payload["email"] = email
        if self._audience:
            payload["aud"] = self._audience
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_token(self, token: str) -> dict[str, Any]:
        """Verify and decode a JWT token.

        Args:
            token: The JWT token string to verify.

        Returns:
            Decoded token payload as a dictionary.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or has no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if not payload.get("sub"):
            raise InvalidTokenError("Invalid token: missing subject")
        return payload


_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
