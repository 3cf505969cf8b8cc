"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py and audit/models.py -- dataclasses own domain shape;
stores and routes do the work.

Two user shapes exist on purpose:
  User        -- the credential-store row, including password_hash. Only the
                 store and the authenticator ever hold one.
  PublicUser  -- what the gate hands to handlers and what responses are built
                 from. It has no hash field at all, so no downstream code path
                 can serialize one by accident.

Layer rule: no imports from api/, audit/, or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass

# Closed role set. Order carries no meaning -- there is no implied hierarchy.
ROLES: tuple[str, ...] = ("guest", "editor", "admin")

DEFAULT_ROLE = "guest"


@dataclass
class User:
    """A credential-store record.

    email is matched exactly, case-sensitive as stored.
    """

    email: str
    name: str
    role: str  # "guest" | "editor" | "admin"
    id: int | None = None
    password_hash: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PublicUser:
    """Outward-facing user profile. Never carries credential material."""

    id: int
    email: str
    name: str
    role: str
    created_at: str


@dataclass(frozen=True)
class Session:
    """A server-side login session.

    token_hash is HMAC-SHA256(SECRET_KEY, raw_token). The raw bearer token
    lives only in the client's cookie. Sessions are never updated in place:
    logout deletes the row, expiry is detected by comparing expires_at.
    """

    user_id: int
    token_hash: str
    expires_at: str  # ISO 8601 UTC
    id: int | None = None
    created_at: str | None = None
