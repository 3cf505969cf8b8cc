"""
core/db.py -- Engine construction and timestamp helpers shared by every store.

Each repository (UserStore, SessionStore, OperationLogStore, CatalogStore)
owns its own Engine built from a database URL. SQLAlchemy provides a
database-agnostic abstraction: swapping SQLite for PostgreSQL is a connection
string change, not a rewrite.

Timestamps are stored as ISO 8601 UTC strings with a fixed microsecond
precision. A fixed width keeps lexical order equal to chronological order,
which the audit log date filters rely on.

Layer rule: core/ is the kernel. No imports from api/, auth/, audit/, or catalog/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import SingletonThreadPool


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_url(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///") or ":memory:" in db_url or "mode=memory" in db_url


def make_engine(db_url: str) -> Engine:
    """Create an Engine, applying the SQLite-specific settings when needed.

    check_same_thread=False: FastAPI runs sync handlers in a thread pool, so a
    pooled SQLite connection may be used from a different thread than the one
    that opened it.

    In-memory databases use SingletonThreadPool: a shared-cache memory
    database exists only while a connection to it stays open.
    """
    kwargs: dict = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(db_url):
            kwargs["poolclass"] = SingletonThreadPool
    engine = create_engine(db_url, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def to_iso(dt: datetime) -> str:
    """Normalize a datetime to the stored string form. Naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    """Parse a stored timestamp back into an aware UTC datetime."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return to_iso(now_utc())
