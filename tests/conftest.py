"""
tests/conftest.py -- Shared test fixtures for CushionTrack tests.

This module provides:
  - make_stores(): isolated in-memory DBs for every store the app uses
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores / client: a fresh set of stores and a TestClient per test
  - make_user / headers_for: seed accounts and sessions directly
  - admin_headers / editor_headers / guest_headers: one ready session per role

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. A uuid
in every name keeps tests from seeing each other's rows.

Environment must be set before any api/auth/core import: get_settings() is
cached on first use and api.limiter reads it at import time.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: set before any project import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from audit.logger import AuditLogger
from audit.store import OperationLogStore
from auth.authenticator import Authenticator
from auth.models import User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import hash_password
from catalog.store import CatalogStore

PASSWORD = "correct horse"


def memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


@dataclass
class Stores:
    users: UserStore
    sessions: SessionStore
    catalog: CatalogStore
    audit: AuditLogger
    authenticator: Authenticator

    def close(self) -> None:
        self.audit.store.close()
        self.catalog.close()
        self.sessions.close()
        self.users.close()


def make_stores() -> Stores:
    """Create one isolated in-memory database per store."""
    users = UserStore(db_url=memory_url("users"))
    sessions = SessionStore(db_url=memory_url("sessions"))
    return Stores(
        users=users,
        sessions=sessions,
        catalog=CatalogStore(db_url=memory_url("catalog")),
        audit=AuditLogger(OperationLogStore(db_url=memory_url("audit"))),
        authenticator=Authenticator(users, sessions),
    )


def _patch_lifespan(stores: Stores):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = stores.users
        app.state.session_store = stores.sessions
        app.state.catalog = stores.catalog
        app.state.audit = stores.audit
        app.state.authenticator = stores.authenticator
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


def _create_user(stores: Stores, email: str, role: str = "guest", name: str | None = None) -> int:
    """Insert a user straight into the store with the shared test PASSWORD."""
    return stores.users.create_user(
        User(
            email=email,
            name=name or email.split("@")[0].title(),
            role=role,
            password_hash=hash_password(PASSWORD),
        )
    )


def _session_headers(stores: Stores, user_id: int) -> dict[str, str]:
    """Open a session for user_id and return a Cookie header carrying it."""
    token = stores.authenticator.start_session(user_id)
    return {"Cookie": f"session_token={token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[Stores, None, None]:
    s = make_stores()
    yield s
    s.close()


@pytest.fixture
def client(stores: Stores) -> Generator[TestClient, None, None]:
    """TestClient over the real app and middleware stack, backed by `stores`.

    raise_server_exceptions=False so the 500 handler's envelope is what tests
    see, the same as a real client would.
    """
    app.router.lifespan_context = _patch_lifespan(stores)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def admin_headers(stores: Stores) -> dict[str, str]:
    return _session_headers(stores, _create_user(stores, "admin@example.com", role="admin"))


@pytest.fixture
def editor_headers(stores: Stores) -> dict[str, str]:
    return _session_headers(stores, _create_user(stores, "editor@example.com", role="editor"))


@pytest.fixture
def guest_headers(stores: Stores) -> dict[str, str]:
    return _session_headers(stores, _create_user(stores, "guest@example.com", role="guest"))


@pytest.fixture
def password() -> str:
    """The password every make_user() account is created with."""
    return PASSWORD


@pytest.fixture
def make_user(stores: Stores) -> Callable[..., int]:
    """make_user(email, role="guest", name=None) -> user id."""

    def factory(email: str, role: str = "guest", name: str | None = None) -> int:
        return _create_user(stores, email, role=role, name=name)

    return factory


@pytest.fixture
def headers_for(stores: Stores) -> Callable[[int], dict[str, str]]:
    """headers_for(user_id) -> Cookie header for a fresh session of that user."""

    def factory(user_id: int) -> dict[str, str]:
        return _session_headers(stores, user_id)

    return factory
