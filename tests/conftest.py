"""
tests/conftest.py -- Shared test fixtures for SessionAuth.

This module provides:
  - user_store / session_store / session: in-memory stores for unit tests
  - _make_test_stores(): isolated named shared-memory DBs for the HTTP tests
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - client: TestClient bound to fresh stores, one per test

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the HTTP tests because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each test gets its own URI name so cookies and users
never leak between tests.

Environment variables must be set before any auth/core import:
  DEBUG=true        lets get_settings() auto-generate SECRET_KEY
  ARGON2_*          cheap hashing parameters so the suite stays fast
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.sessions import SessionHandle, SessionStore
from auth.store import UserStore

TEST_SECRET = "x" * 32

# ---------------------------------------------------------------------------
# Unit-test stores
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def session_store() -> Generator[SessionStore, None, None]:
    store = SessionStore("sqlite:///:memory:", secret_key=TEST_SECRET, ttl_seconds=3600)
    yield store
    store.close()


@pytest.fixture
def session(session_store: SessionStore) -> SessionHandle:
    """A handle for a caller with no cookie."""
    return SessionHandle(session_store)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, SessionStore]:
    """Create user and session stores over one named shared-memory database."""
    url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), SessionStore(url, secret_key=TEST_SECRET, ttl_seconds=3600)


def _patch_lifespan(user_store: UserStore, session_store: SessionStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine so shutdown can cancel a
    real asyncio.Task.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.session_store = session_store
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """TestClient over the real app with fresh, isolated stores.

    The client keeps cookies between requests within a test, like a browser.
    """
    user_store, session_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(user_store, session_store)

    with TestClient(app, raise_server_exceptions=True) as c:
        yield c

    session_store.close()
    user_store.close()
