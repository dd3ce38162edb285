"""
Rate limiting configuration using slowapi.

Uses Redis as the backend so limits are shared across API workers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import settings


def _get_user_or_ip(request: Request) -> str:
    """Rate-limit key: authenticated user ID if available, otherwise client IP."""
    # Set by the auth dependency
    user = getattr(request.state, "current_user", None)
    if user and hasattr(user, "id"):
        return str(user.id)
    return get_remote_address(request)


limiter = Limiter(
    key_func=_get_user_or_ip,
    storage_uri=settings.rate_limit_storage_url,
    strategy="fixed-window",
)

# Pre-defined rate limit strings for use in route decorators:
#   @limiter.limit(RATE_ALERT_WRITE)
RATE_ALERT_WRITE = "20/minute"   # alert create/update
RATE_ADMIN = "30/minute"         # queue and index maintenance
RATE_DEFAULT = "60/minute"       # general API fallback
