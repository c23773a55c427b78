"""
tests/conftest.py -- Shared test fixtures for Freightgate.

This module provides:
  - settings: a valid Settings with a test secret and bcrypt cost 4
  - user_store / pricing_store: isolated in-memory SQLite stores
  - client: TestClient over create_app() wired to those stores
  - register_and_login(): helper returning a bearer token for a new account

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
Each fixture instance gets a fresh name so tests never see each other's rows.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from pricing.store import PricingStore

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"


def _memory_url(prefix: str) -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register_and_login(client: TestClient, email: str, password: str, role: str) -> str:
    """Register an account through the API and return a bearer token for it."""
    resp = client.post("/api/v1/auth/register", json={"email": email, "password": password, "role": role})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret_key=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def hasher() -> PasswordHasher:
    # Cost 4 is bcrypt's minimum -- fast enough for unit tests.
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(_memory_url("test_users"))
    yield store
    store.close()


@pytest.fixture
def pricing_store() -> Generator[PricingStore, None, None]:
    store = PricingStore(_memory_url("test_pricing"))
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(
    settings: Settings, user_store: UserStore, pricing_store: PricingStore
) -> Generator[TestClient, None, None]:
    """TestClient over the real app with isolated in-memory stores."""
    app = create_app(settings, user_store=user_store, pricing_store=pricing_store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def tokens_by_role(client: TestClient) -> dict[str, str]:
    """One registered account per role, keyed by role name -> bearer token."""
    return {
        role: register_and_login(client, f"{role}@freight.test", f"{role}-pass-123", role)
        for role in ("admin", "shipper", "carrier")
    }
