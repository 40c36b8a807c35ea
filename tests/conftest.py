"""
tests/conftest.py -- Shared test fixtures for portfolio API integration tests.

This module provides:
  - make_stores(): isolated named shared-memory SQLite stores per test module
  - _patch_lifespan(): wires test stores and services into app.state,
    bypassing real startup
  - api_client: (client, token, uid) -- TestClient plus an ADMIN access token
  - user_factory: registers fresh USER accounts through the API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

DEBUG, BCRYPT_ROUNDS and RATE_LIMIT_ENABLED must be set before any app import:
get_settings() is cached on first use and api.limiter reads it at import.
"""

from __future__ import annotations

import asyncio
import itertools
import os
import tempfile
import time
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from unittest.mock import MagicMock

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="portfolio-uploads-"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ROLE_ADMIN, User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer, hash_password
from cache.store import ResponseCache
from content.services import build_services
from content.store import ContentStore
from core.config import get_settings
from storage.files import LocalFileStorage

ADMIN_EMAIL = "admin@portfolio.io"
ADMIN_PASSWORD = "adminpass123"
USER_PASSWORD = "password123"

# Only the extension and declared content type are checked, not the bytes.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_stores(db_suffix: str) -> tuple[UserStore, ContentStore]:
    """Create isolated named shared-memory SQLite stores for one test module.

    Both stores share one in-memory database, as they share one DATABASE_URL
    in production.
    """
    url = f"sqlite:///file:test_portfolio_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), ContentStore(db_url=url)


def _patch_lifespan(user_store: UserStore, content_store: ContentStore, files: LocalFileStorage):
    """Return an async context manager that replaces the real lifespan.

    The mailer is a MagicMock so contact replies never reach an SMTP server,
    and the GitHub response cache lives in memory.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        app.state.user_store = user_store
        app.state.content_store = content_store
        app.state.files = files
        app.state.cache = ResponseCache(":memory:", ttl=settings.github_cache_ttl)
        app.state.mailer = MagicMock()
        app.state.auth = AuthService(
            user_store,
            TokenIssuer.from_settings(settings),
            rounds=settings.bcrypt_rounds,
            files=files,
        )
        app.state.content = build_services(content_store, files, app.state.mailer)
        app.state.started_at = time.monotonic()
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        app.state.cache.close()

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request, tmp_path_factory) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use isolated in-memory stores and a
    temporary upload directory. The ADMIN user is created before the client
    starts and its access token is returned for Authorization headers.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    user_store, content_store = make_stores(suffix)
    files = LocalFileStorage(tmp_path_factory.mktemp(f"uploads_{suffix}"), "http://testserver")

    settings = get_settings()
    uid = user_store.create_user(
        User(
            email=ADMIN_EMAIL,
            name="Test Admin",
            hashed_password=hash_password(ADMIN_PASSWORD, settings.bcrypt_rounds),
            role=ROLE_ADMIN,
        )
    )
    token = TokenIssuer.from_settings(settings).issue(uid).access_token

    app.router.lifespan_context = _patch_lifespan(user_store, content_store, files)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()
    content_store.close()


@pytest.fixture(scope="module")
def user_factory(api_client) -> Callable[[], tuple[str, int]]:
    """Return a function that registers a new USER and yields (token, user_id)."""
    client, _, _ = api_client
    counter = itertools.count(1)

    def make() -> tuple[str, int]:
        n = next(counter)
        resp = client.post(
            "/api/v1/auth/register",
            json={"name": f"User {n}", "email": f"user{n}@portfolio.io", "password": USER_PASSWORD},
        )
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        data = resp.json()["data"]
        return data["access_token"], data["user"]["id"]

    return make
