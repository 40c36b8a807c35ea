"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in the route modules
(to apply per-route limits with @limiter.limit()).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

Three limits, all read from settings:
  default_limits    -- API_RATE_LIMIT, applied by SlowAPIMiddleware to every
                       route without its own decorator
  auth_limit()      -- AUTH_RATE_LIMIT, for register/login/refresh
  contact_limit()   -- CONTACT_RATE_LIMIT, for the public contact form

RATE_LIMIT_ENABLED=false turns every limit off (used by the test suite).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    default_limits=[_settings.api_rate_limit],
    enabled=_settings.rate_limit_enabled,
)


def auth_limit() -> str:
    return get_settings().auth_rate_limit


def contact_limit() -> str:
    return get_settings().contact_rate_limit
