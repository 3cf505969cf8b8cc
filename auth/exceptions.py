"""
auth/exceptions.py -- Failure kinds raised by the authenticator and the gate.

Each exception carries a stable machine-readable code and a user-facing
message. api/main.py maps them onto the shared ErrorResponse envelope, so
route handlers never build auth error bodies by hand.

Anti-enumeration: AuthenticationFailure has exactly two messages (bad
credentials, no session) and never says which half of a credential pair was
wrong. AuthorizationFailure may name the allowed roles -- that is not secret.
"""

from __future__ import annotations

from collections.abc import Iterable


class AuthError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code: int = 400
    code: str = "auth_error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class AuthenticationFailure(AuthError):
    """Bad credentials, or no valid session on a protected route."""

    status_code = 401
    code = "authentication_failure"

    BAD_CREDENTIALS = "Invalid email or password."
    LOGIN_REQUIRED = "Please log in."


class AuthorizationFailure(AuthError):
    """Valid session, but the caller's role is not in the route's allowed set."""

    status_code = 403
    code = "authorization_failure"

    def __init__(self, allowed: Iterable[str]) -> None:
        roles = ", ".join(sorted(allowed))
        super().__init__("Insufficient permission.", detail=f"Allowed roles: {roles}")


class DuplicateEmail(AuthError):
    """Registration or provisioning with an email that is already taken."""

    status_code = 400
    code = "duplicate_email"

    def __init__(self) -> None:
        super().__init__("This email is already registered.")


class RegistrationDisabled(AuthError):
    status_code = 403
    code = "registration_disabled"

    def __init__(self) -> None:
        super().__init__("Self-registration is disabled. Ask an administrator for an account.")
