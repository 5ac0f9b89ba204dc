"""
tests/conftest.py -- Shared test fixtures for CineReview tests.

This module provides:
  - make_test_stores(): creates isolated in-memory DBs for users + catalog
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus a token for a pre-created user
  - auth_header(): builds the Authorization header the way clients send it

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Environment must be set before any api/auth/core import: DEBUG lets
get_settings() auto-generate SECRET_KEY, BCRYPT_ROUNDS keeps hashing fast,
and RATE_LIMIT_ENABLED=false keeps repeated sign-ins from tripping slowapi.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_services
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from catalog.store import CatalogStore
from core.config import get_settings

TEST_USERNAME = "testuser"
TEST_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_stores(db_suffix: str) -> tuple[UserStore, CatalogStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'scenarios').
    """
    url = f"sqlite:///file:test_cinereview_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), CatalogStore(db_url=url)


def _patch_lifespan(user_store: UserStore, catalog: CatalogStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app, user_store, catalog, get_settings())
        yield

    return test_lifespan


def auth_header(token: str, scheme: str = "JWT") -> dict[str, str]:
    return {"Authorization": f"{scheme} {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    Each test module gets its own database, named after the module, and one
    pre-created user whose token is valid for an hour.
    """
    user_store, catalog = make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    user = user_store.create_user(
        User(name="Test User", username=TEST_USERNAME, hashed_password=hash_password(TEST_PASSWORD))
    )
    token = create_access_token(user.id, user.username, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(user_store, catalog)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, user.id

    user_store.close()
    catalog.close()


@pytest.fixture
def catalog_store() -> Generator[CatalogStore, None, None]:
    store = CatalogStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()
