"""API middleware modules."""

from .auth import (
    CurrentUser,
    get_current_user,
    get_optional_user,
    require_cron_secret,
)
from .rate_limit import (
    limiter,
    create_limiter,
    get_rate_limit_key,
    RATE_LIMIT_STANDARD,
    RATE_LIMIT_SUBMIT,
)

__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_optional_user",
    "require_cron_secret",
    "limiter",
    "create_limiter",
    "get_rate_limit_key",
    "RATE_LIMIT_STANDARD",
    "RATE_LIMIT_SUBMIT",
]
