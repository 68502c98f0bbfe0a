"""
api/limiter.py -- Shared slowapi rate limiter and the route decorators built on it.

Limits are attached to each route with a decorator rather than found by
SlowAPIMiddleware, whose route lookup does not see routes added through
include_router() on every FastAPI release.

  global_limit  -- one per-IP counter shared by every route (scope "global"),
                   so N requests spread over any mix of endpoints count as N.
  login_limit   -- extra per-IP counter on POST /api/login only.

Place both BELOW the @router.<method>() decorator so the wrapped function is
what FastAPI registers. Decorated routes must take a `request: Request`
parameter.

Limit strings are read from settings on every request, so the values in
core/config.py (or a patched Settings in tests) always apply.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)


def _global_rate() -> str:
    return get_settings().rate_limit


def _login_rate() -> str:
    return get_settings().login_rate_limit


global_limit = limiter.shared_limit(_global_rate, scope="global")
login_limit = limiter.limit(_login_rate)
