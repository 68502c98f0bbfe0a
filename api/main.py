"""
api/main.py -- FastAPI application entry point for Simple API.

Run with:  python main.py
           uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests         -- method, path, status, latency, client IP
  2. CORSMiddleware       -- CORS headers, also on error responses
  3. GZipMiddleware       -- compresses responses above gzip_minimum_size

Rate limits are not middleware: each route carries the slowapi decorators
from api/limiter.py (shared per-IP global_limit, plus login_limit on login).

Lifespan owns the UserStore: it is created on startup, attached to
app.state.user_store, and closed on shutdown. Handlers reach it through the
request, never through a module global.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse
from api.routes.auth import protected as protected_router
from api.routes.auth import router as auth_router
from api.routes.messages import router as messages_router
from api.routes.status import router as status_router
from auth.errors import AuthError
from auth.store import UserStore
from core.config import get_settings

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("simpleapi.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the in-memory identity store on startup and release it on shutdown."""
    logger.info("%s %s starting up", _settings.app_name, _settings.app_version)
    app.state.user_store = UserStore()
    logger.info("Identity store initialized (in-memory)")

    yield

    app.state.user_store.close()
    logger.info("%s shutdown complete", _settings.app_name)


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title=_settings.app_name,
    description="Status pings, message submission, user registration, and bearer-token auth.",
    version=_settings.app_version,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Each add_middleware() call wraps the stack built so far, so the LAST
# registration is the outermost layer. Register innermost first.
# ---------------------------------------------------------------------------

app.add_middleware(GZipMiddleware, minimum_size=_settings.gzip_minimum_size)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
)

# slowapi route decorators look up app.state.limiter on every request.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(status_router, tags=["Status"])
app.include_router(messages_router, tags=["Messages"])
app.include_router(auth_router, tags=["Auth"])
app.include_router(protected_router, tags=["Protected"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate auth-layer errors into their mapped status and error code.

    401 responses carry WWW-Authenticate: Bearer so clients know which scheme
    to retry with.
    """
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path)
    else:
        logger.warning("%s on %s %s", exc.code, request.method, request.url.path)
    response = _error_response(exc.status_code, exc.code, exc.message)
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After is the length of the exceeded limit's window in seconds.
    """
    retry_after = int(exc.limit.limit.get_expiry())
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc.detail))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body is malformed or fails field validation.

    The offending input values are dropped from the detail so submitted
    passwords are never echoed back.
    """
    errors = [{k: v for k, v in err.items() if k not in ("input", "ctx")} for err in exc.errors()]
    return _error_response(400, "validation_error", "Invalid request body.", str(errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for routing errors (404, 405) and explicit HTTPExceptions."""
    response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged only, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")
