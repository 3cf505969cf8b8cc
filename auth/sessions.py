"""
auth/sessions.py -- SQLAlchemy Core persistence layer for login sessions.

Lifecycle:
  ACTIVE   -- row exists and now < expires_at.
  EXPIRED  -- row exists and now >= expires_at. Treated exactly like a missing
              row by get_active(); purge_expired() reclaims it eventually.
  REVOKED  -- row deleted by logout, user deletion, or an operator.
  EXPIRED and REVOKED are terminal. Rows are never updated.

Only token digests are stored (see auth.tokens.hash_session_token). A stolen
copy of this table cannot be replayed as a cookie without SECRET_KEY.

Layer rule: no imports from api/, audit/, or catalog/.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from auth.models import Session
from core.config import get_settings
from core.db import from_iso, make_engine, now_iso, now_utc, to_iso

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("token_hash", String(64), nullable=False, unique=True),  # HMAC-SHA256 hex
    Column("expires_at", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)


class SessionStore:
    """Repository for Session entities.

    Usage:
        sessions = SessionStore()
        sessions.create_session(user_id, token_hash, expires_at)
        session = sessions.get_active(token_hash)   # None if missing or expired
        sessions.delete_session(token_hash)
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def create_session(self, user_id: int, token_hash: str, expires_at: datetime) -> Session:
        """Insert a new session row and return it."""
        created_at = now_iso()
        expires_iso = to_iso(expires_at)
        with self.engine.connect() as conn:
            result = conn.execute(
                _sessions.insert().values(
                    user_id=user_id,
                    token_hash=token_hash,
                    expires_at=expires_iso,
                    created_at=created_at,
                )
            )
            conn.commit()
            session_id = result.inserted_primary_key[0]
        return Session(
            id=session_id,
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_iso,
            created_at=created_at,
        )

    def get_active(self, token_hash: str, now: datetime | None = None) -> Session | None:
        """Return the session for token_hash if it exists and has not expired.

        Validity is strict: a session whose expires_at equals now is expired.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.token_hash == token_hash)).fetchone()
        if row is None:
            return None
        current = now or now_utc()
        if current >= from_iso(row.expires_at):
            return None
        return _row_to_session(row)

    def delete_session(self, token_hash: str) -> bool:
        """Revoke a session. Returns False when there was nothing to delete."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.token_hash == token_hash))
            conn.commit()
        return result.rowcount > 0

    def delete_user_sessions(self, user_id: int) -> int:
        """Revoke every session owned by user_id. Returns the number removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.user_id == user_id))
            conn.commit()
        return result.rowcount

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete sessions whose expiry has passed. Returns number of rows removed."""
        cutoff = to_iso(now or now_utc())
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= cutoff))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


def _row_to_session(row) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )
