"""
api/routes/auth.py -- Registration, login, and the protected profile endpoint.

Routes:
  POST /api/users               -- register a user (public)
  POST /api/login               -- password login; returns a bearer token (public)
  GET  /api/protected/profile   -- current user's profile (requires bearer token)

Security:
  Every route counts against the shared per-IP global_limit; POST /login
  also counts against login_limit. Protected routes reject missing or
  invalid tokens in the router-level dependency, before the limiter runs.
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Cache-Control: no-store on login responses so tokens are not cached.

Errors are raised as auth.errors.AuthError subclasses; api/main.py maps them
to status codes and the ErrorResponse envelope.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import global_limit, login_limit
from api.models import LoginRequest, LoginResponse, LoginUser, RegisterRequest, UserResponse
from auth.dependencies import get_current_subject, get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.config import get_settings

logger = logging.getLogger("simpleapi.api.auth")

_settings = get_settings()

# Auth policy:
# - POST /api/users:              public
# - POST /api/login:              public, login_limit on top of global_limit
# - GET  /api/protected/*:        bearer token required (router-level dependency)
router = APIRouter(prefix="/api")
protected = APIRouter(prefix="/api/protected", dependencies=[Depends(get_current_subject)])


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserResponse, status_code=201)
@global_limit
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a user. The password is bcrypt-hashed before it reaches the store.

    Returns 409 username_taken if the username already exists.
    """
    user_store: UserStore = request.app.state.user_store
    user = User(
        username=body.username,
        email=body.email,
        hashed_password=hash_password(body.password),
    )
    user_store.create_user(user)
    return UserResponse.from_user(user)


@router.post("/login", response_model=LoginResponse)
@global_limit
@login_limit
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password and return a signed token.

    Wrong password and unknown username both yield 401 invalid_credentials
    with an identical body.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    token = create_access_token(user.id)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            expires_in=_settings.token_expire_seconds,
            user=LoginUser(id=user.id, username=user.username, email=user.email),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    logger.info("Issued token for user %s", user.id)
    return resp


# ---------------------------------------------------------------------------
# Protected endpoints
# ---------------------------------------------------------------------------


@protected.get("/profile", response_model=UserResponse)
@global_limit
def profile(request: Request, current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the profile of the user the bearer token was issued to."""
    return UserResponse.from_user(current_user)
