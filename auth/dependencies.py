"""
auth/dependencies.py -- FastAPI Depends() helpers for the authorization gate.

The only credential accepted is the session cookie set at login/register.
Resolution goes cookie -> token digest -> active session -> PublicUser. The
password hash is never selected on this path, so nothing downstream of the
gate can leak it.

Three route policies:
  public                  -- no dependency at all.
  get_current_user        -- requireAuth: 401 if no valid session.
  require_role({...})     -- requireRole: 401 if no valid session, 403 if the
                             resolved role is not in the allowed set.

Allowed sets are always explicit. "admin" passes a check only when the route
lists "admin"; there is no implied ordering between roles.

The resolved PublicUser is returned to the handler as an argument. Nothing is
stashed on request.state or in module globals.

Layer rule: no imports from api/, audit/, or catalog/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from fastapi import Request

from auth.authenticator import Authenticator
from auth.exceptions import AuthenticationFailure, AuthorizationFailure
from auth.models import ROLES, PublicUser
from core.config import get_settings

# Named role sets used across routers.
ADMINS: frozenset[str] = frozenset({"admin"})
EDITORS: frozenset[str] = frozenset({"editor", "admin"})


def session_token(request: Request) -> str | None:
    """Return the raw session token carried by the request, if any."""
    return request.cookies.get(get_settings().session_cookie_name) or None


def try_get_current_user(request: Request) -> PublicUser | None:
    """Resolve the caller from the session cookie. Returns None on any failure.

    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    authenticator: Authenticator = request.app.state.authenticator
    return authenticator.resolve(session_token(request))


def get_current_user(request: Request) -> PublicUser:
    """Require a valid session. Raises AuthenticationFailure (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: PublicUser = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise AuthenticationFailure(AuthenticationFailure.LOGIN_REQUIRED)
    return user


def require_role(allowed: Iterable[str]) -> Callable[[Request], PublicUser]:
    """Build a dependency that admits only callers whose role is in allowed.

    Use as a FastAPI dependency:
        @router.post("/fabrics")
        def route(user: PublicUser = Depends(require_role(EDITORS))): ...
    """
    allowed_set = frozenset(allowed)
    unknown = allowed_set - set(ROLES)
    if unknown or not allowed_set:
        raise ValueError(f"Invalid allowed role set: {sorted(allowed_set)!r}")

    def dependency(request: Request) -> PublicUser:
        user = get_current_user(request)
        if user.role not in allowed_set:
            raise AuthorizationFailure(allowed_set)
        return user

    dependency.__name__ = f"require_role_{'_'.join(sorted(allowed_set))}"
    return dependency


require_admin = require_role(ADMINS)
