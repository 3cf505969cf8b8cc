"""
api/routes/v1/auth.py -- Registration, login, logout, and current-user endpoints.

Routes:
  POST /api/register   -- create a guest account; sets session cookie; 201
  POST /api/login      -- password login; sets session cookie; 200
  POST /api/logout     -- destroys the session; clears cookie; always 200
  GET  /api/user       -- current user profile (requires auth)

Security:
  POST /login and POST /register are rate-limited per IP.
  Authenticator.login() provides timing equalization and one generic failure
      for unknown email and wrong password -- use it, never inline the lookup.
  Authenticator.register() ignores any role in the payload; RegisterRequest
      drops unknown fields before the handler sees them.
  Cache-Control: no-store on responses that set a session cookie.
  The raw session token only travels in the Set-Cookie header.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, MessageResponse, RegisterRequest, UserResponse
from auth.authenticator import Authenticator
from auth.dependencies import get_current_user, session_token
from auth.exceptions import RegistrationDisabled
from auth.models import PublicUser
from auth.tokens import clear_session_cookie, set_session_cookie
from core.config import get_settings

logger = logging.getLogger("cushiontrack.api")

_settings = get_settings()

# Auth policy:
# - POST /api/register: public
# - POST /api/login:    public
# - POST /api/logout:   public -- ending a session needs no prior auth check
# - GET  /api/user:     requires auth (get_current_user)
router = APIRouter()


def _session_response(status_code: int, user: PublicUser, token: str) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=UserResponse.from_public(user).model_dump())
    set_session_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(_settings.register_rate_limit)
@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a guest account and log it in.

    The new account is always a guest. Promotion is an admin-only operation
    on PATCH /api/users/{id}.
    """
    if not get_settings().self_registration_enabled:
        raise RegistrationDisabled()
    authenticator: Authenticator = request.app.state.authenticator
    user, token = authenticator.register(body.email, body.name, body.password)
    return _session_response(201, user, token)


@limiter.limit(_settings.login_rate_limit)
@router.post("/login", response_model=UserResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    authenticator: Authenticator = request.app.state.authenticator
    user, token = authenticator.login(body.email, body.password)
    return _session_response(200, user, token)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    """Destroy the server-side session and clear the cookie.

    Always 200. The cookie is cleared even when the server-side delete fails,
    so the client ends up logged out either way.
    """
    authenticator: Authenticator = request.app.state.authenticator
    try:
        authenticator.logout(session_token(request))
    except Exception:
        logger.exception("Session delete failed during logout")
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_session_cookie(resp)
    return resp


@router.get("/user", response_model=UserResponse)
def current_user(user: PublicUser = Depends(get_current_user)) -> UserResponse:
    """Return the profile of the currently logged-in user."""
    return UserResponse.from_public(user)
