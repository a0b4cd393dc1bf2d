"""
tests/conftest.py -- Shared test fixtures for Credgate.

This module provides:
  - hasher / tokens / store / accounts: isolated components for unit tests
  - _make_test_store(): isolated named shared-memory SQLite store
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - client: TestClient over the real app with fresh components per test
  - register_and_login(): helper returning (user_json, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"

# bcrypt's minimum cost; keeps each hash in the low milliseconds.
FAST_ROUNDS = 4


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store() -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    A random suffix keeps every test on its own database, so usernames and
    ids never leak between tests.
    """
    name = f"test_users_{uuid.uuid4().hex}"
    return UserStore(db_url=f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(accounts: AccountService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = accounts.store
        app.state.password_hasher = accounts.hasher
        app.state.token_service = accounts.tokens
        app.state.account_service = accounts
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=FAST_ROUNDS)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = _make_test_store()
    yield s
    s.close()


@pytest.fixture
def accounts(store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> AccountService:
    return AccountService(store=store, hasher=hasher, tokens=tokens)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(accounts: AccountService) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app wired to this test's components.

    Tests hit the real routes, dependencies and exception handlers but use an
    isolated in-memory database and the fixed TEST_SECRET.
    """
    app.router.lifespan_context = _patch_lifespan(accounts)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def register_and_login(client: TestClient, username: str, password: str, role: str | None = None) -> tuple[dict, str]:
    """Register an account through the API, log in, and return (user_json, token)."""
    body = {"username": username, "password": password}
    if role is not None:
        body["role"] = role
    resp = client.post("/register", json=body)
    assert resp.status_code == 201, resp.text
    login = client.post("/login", json={"username": username, "password": password})
    assert login.status_code == 200, login.text
    return resp.json(), login.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
