"""
api/routes/status.py -- Liveness and info endpoints. All public.

Routes:
  GET /            -- plain-text greeting
  GET /api/info    -- application name, version, server time
  GET /api/ping    -- pong + server time
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from api.limiter import global_limit
from api.models import InfoResponse, PingResponse
from core.config import get_settings

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
@global_limit
async def root(request: Request) -> str:
    return "Hello, World!"


@router.get("/api/info", response_model=InfoResponse)
@global_limit
async def info(request: Request) -> InfoResponse:
    """Return application identity and the current server time."""
    settings = get_settings()
    return InfoResponse(app_name=settings.app_name, version=settings.app_version)


@router.get("/api/ping", response_model=PingResponse)
@global_limit
async def ping(request: Request) -> PingResponse:
    return PingResponse()
