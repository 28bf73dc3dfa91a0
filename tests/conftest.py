"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET; tests never read a real .env
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("CLEARING_SCHEDULER_TOKEN", "sched-test-token")

from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


def _tx() -> MagicMock:
    """Async context manager standing in for db.begin() / db.begin_nested()."""
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=None)
    tx.__aexit__ = AsyncMock(return_value=False)  # never swallow exceptions
    return tx


@pytest.fixture
def db() -> MagicMock:
    """Session mock: transactions are no-ops, outbox inserts return id 1."""
    session = MagicMock()
    session.begin = MagicMock(side_effect=lambda: _tx())
    session.begin_nested = MagicMock(side_effect=lambda: _tx())
    result = MagicMock()
    result.scalar_one.return_value = 1
    session.execute = AsyncMock(return_value=result)
    return session


@pytest.fixture
def publisher() -> AsyncMock:
    pub = AsyncMock()
    pub.publish.return_value = 0
    pub.relay_unpublished.return_value = 0
    return pub


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
