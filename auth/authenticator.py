"""
auth/authenticator.py -- login, register, and logout.

The Authenticator is the only component that turns credentials into sessions.
It returns (PublicUser, raw_token) pairs; the route layer writes the token to
the cookie and the profile to the body. A full User record (with its hash)
never leaves this module.

Security invariants enforced here rather than in routes:
  - register() always creates a guest. There is no role parameter to pass.
  - login() raises the same AuthenticationFailure for an unknown email and a
    wrong password.
  - logout() is idempotent: an unknown, expired, or already-revoked token is
    not an error.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from auth.exceptions import AuthenticationFailure, DuplicateEmail
from auth.models import DEFAULT_ROLE, PublicUser, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import authenticate_user, generate_session_token, hash_password, hash_session_token
from core.config import get_settings
from core.db import now_utc

logger = logging.getLogger("cushiontrack.auth")


class Authenticator:
    def __init__(self, users: UserStore, sessions: SessionStore) -> None:
        self.users = users
        self.sessions = sessions

    def login(self, email: str, password: str) -> tuple[PublicUser, str]:
        """Verify credentials and open a session.

        Raises AuthenticationFailure on any mismatch.
        """
        user = authenticate_user(self.users, email, password)
        if user is None:
            logger.info("Failed login attempt")
            raise AuthenticationFailure(AuthenticationFailure.BAD_CREDENTIALS)
        token = self.start_session(user.id)
        logger.info("User %d logged in", user.id)
        return _public(user), token

    def register(self, email: str, name: str, password: str) -> tuple[PublicUser, str]:
        """Create a guest account and log it in.

        Raises DuplicateEmail if the email is taken, including when a
        concurrent registration wins the race to the unique index.
        """
        if self.users.get_by_email(email) is not None:
            raise DuplicateEmail()
        new_user = User(
            email=email,
            name=name,
            role=DEFAULT_ROLE,
            password_hash=hash_password(password),
        )
        try:
            user_id = self.users.create_user(new_user)
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        token = self.start_session(user_id)
        logger.info("Registered user %d", user_id)
        profile = self.users.get_public_by_id(user_id)
        if profile is None:
            raise RuntimeError(f"User {user_id} missing after insert")
        return profile, token

    def logout(self, raw_token: str | None) -> None:
        """Destroy the server-side session for raw_token, if there is one."""
        if not raw_token:
            return
        self.sessions.delete_session(hash_session_token(raw_token))

    def resolve(self, raw_token: str | None) -> PublicUser | None:
        """Map a bearer token to the owning user's public profile.

        Returns None for a missing, unknown, expired, or revoked token, and for
        a session whose user has since been deleted.
        """
        if not raw_token:
            return None
        session = self.sessions.get_active(hash_session_token(raw_token))
        if session is None:
            return None
        return self.users.get_public_by_id(session.user_id)

    def start_session(self, user_id: int) -> str:
        """Create a session row for user_id and return the raw bearer token."""
        token = generate_session_token()
        expires_at = now_utc() + timedelta(seconds=get_settings().session_expire_seconds)
        self.sessions.create_session(user_id, hash_session_token(token), expires_at)
        return token


def _public(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        created_at=user.created_at or "",
    )
