"""Shared test fixtures."""

import os

# Settings() requires a secret; set it before any src/config import
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")
os.environ.setdefault("PAYMENT_GATEWAY", "fake")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.mp_common.database import get_db_session  # noqa: E402


@pytest.fixture
def db() -> AsyncMock:
    """Session double: commit / rollback / close are awaited, execute is scripted per test."""
    return AsyncMock()


@pytest.fixture
async def client(db: AsyncMock) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (no DB, lifespan not run)."""

    async def _db_override():  # type: ignore[no-untyped-def]
        yield db

    app.dependency_overrides[get_db_session] = _db_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
