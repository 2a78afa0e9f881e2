"""Rate limiting configuration for the Helix API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from helix.core.config import settings

DEFAULT_LIMITS = (
    [f"{settings.RATE_LIMIT_API}/minute"] if settings.RATE_LIMIT_API > 0 else []
)
AUTH_LIMIT = f"{settings.RATE_LIMIT_AUTH}/minute"

# Storage is in-memory unless RATE_LIMIT_STORAGE_URI points at redis
# (needed once the API runs with more than one worker).
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=DEFAULT_LIMITS,
    enabled=settings.RATE_LIMIT_ENABLED,
)
