"""Shared fixtures and utilities for tests."""

import asyncio
import os
import tempfile
from pathlib import Path

# Settings are read when core.config is first imported, so the test
# environment has to be in place before any application module loads.
_DB_PATH = Path(tempfile.mkdtemp(prefix="inat-teams-tests-")) / "test.db"

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_PATH}")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("REFRESH_TOKEN_EXPIRE_DAYS", "30")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from api.main import app  # noqa: E402
from database.engine import AsyncSessionLocal, reset_db  # noqa: E402
from tests.support import register  # noqa: E402


@pytest.fixture
def client():
    """Test client over a freshly created schema."""
    asyncio.run(reset_db())
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
async def db_session():
    """Async session over a freshly created schema, for service-level tests."""
    await reset_db()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def recruiter(client):
    return register(client, "recruiter@example.com", "Riya Recruiter")


@pytest.fixture
def candidate(client):
    return register(client, "candidate@example.com", "Casey Candidate")


@pytest.fixture
def second_candidate(client):
    return register(client, "second@example.com", "Sam Second")
