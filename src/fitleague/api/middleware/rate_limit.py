"""Rate limiting middleware for FastAPI.

Uses slowapi to implement rate limiting with support for
authenticated users (by user_id) and anonymous users (by IP). Counters
live in the storage configured by ``rate_limit_storage_uri`` so several
instances can share one store.
"""

from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config import get_settings


def get_rate_limit_key(request: Request) -> str:
    """Get the rate limit key for a request.

    Uses user_id if authenticated (from request state), otherwise falls back
    to the client's IP address.
    """
    user: Optional[object] = getattr(request.state, "user", None)
    if user is not None:
        user_id = getattr(user, "user_id", None)
        if user_id:
            return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


def create_limiter(storage_uri: Optional[str] = None) -> Limiter:
    """Build a limiter backed by ``storage_uri`` (defaults to the configured store)."""
    return Limiter(
        key_func=get_rate_limit_key,
        storage_uri=storage_uri or get_settings().rate_limit_storage_uri,
    )


limiter = create_limiter()


# Rate limit constants for different endpoint types
RATE_LIMIT_STANDARD = get_settings().rate_limit_standard
RATE_LIMIT_SUBMIT = get_settings().rate_limit_submit  # entry creation and validation
