"""Authentication dependencies for FastAPI.

Resolves the bearer token on each request to the calling user. League
roles are not carried in the token; services look them up per league.
"""

from dataclasses import dataclass
import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...config import get_settings
from ...services.auth_service import (
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
    get_auth_service,
)


# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """The authenticated caller.

    Attributes:
        user_id: Unique identifier for the user.
        email: User's email address, when the token carries one.
    """

    user_id: str
    email: Optional[str] = None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """FastAPI dependency to get the current authenticated user.

    The user is also stored on ``request.state`` so rate limits are keyed
    per user.

    Raises:
        HTTPException (401): If no token is provided or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = auth_service.verify_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = CurrentUser(user_id=payload["sub"], email=payload.get("email"))
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[CurrentUser]:
    """Like get_current_user, but returns None for anonymous or invalid tokens."""
    if credentials is None:
        return None
    try:
        payload = auth_service.verify_token(credentials.credentials)
    except (TokenExpiredError, InvalidTokenError):
        return None
    user = CurrentUser(user_id=payload["sub"], email=payload.get("email"))
    request.state.user = user
    return user


async def require_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """FastAPI dependency guarding scheduler endpoints with the shared cron secret.

    An empty secret disables the check for local development.

    Raises:
        HTTPException (401): If the bearer value does not match.
    """
    secret = get_settings().cron_secret
    if not secret:
        return
    provided = credentials.credentials if credentials else ""
    if not hmac.compare_digest(provided.encode(), secret.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
