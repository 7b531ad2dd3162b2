"""
BillSense AI Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Reusable infrastructure: mocked sessions for service unit tests, and a
       real app over a throwaway SQLite database for route tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (no database)
    ├── fake_llm:        Canned LLMService (no Gemini calls)
    ├── test_settings:   Settings pointing at a per-test SQLite file
    ├── app:             create_app() with tables created, lifespan skipped
    ├── client:          HTTPX AsyncClient over ASGITransport
    └── register_user:   Helper that registers an account and returns its token
"""

import os
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings BEFORE any billsense import reads the environment
os.environ["NODE_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./billsense_test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from billsense.config import Settings  # noqa: E402
from billsense.database import Base  # noqa: E402
from billsense.main import create_app  # noqa: E402
from billsense.services.llm_base import LLMService  # noqa: E402


class FakeLLM(LLMService):
    """
    LLMService double that replays queued replies and records prompts.

    An Exception instance in the queue is raised instead of returned.
    """

    def __init__(self, replies: Optional[List] = None, healthy: bool = True):
        self.replies = list(replies or [])
        self.prompts: List[str] = []
        self.healthy = healthy

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            return ""
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def health_check(self) -> bool:
        return self.healthy


# ══════════════════════════════════════════════════════════════════════════
# Unit-test doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = invoice
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_llm():
    return FakeLLM()


# ══════════════════════════════════════════════════════════════════════════
# Application fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'billsense.db'}",
        jwt_secret="test-secret-not-for-production",
        gemini_api_key="test-key-not-real",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(test_settings, fake_llm):
    """
    A fully wired app with its tables created.

    ASGITransport does not run the lifespan, so the database is connected
    and the schema created here instead.
    """
    application = create_app(test_settings, llm=fake_llm)
    database = application.state.context.database
    await database.connect()
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def register_user(client):
    """Register a fresh account; returns (token, user_json)."""

    async def _register(name: str = "Test User", email: Optional[str] = None, password: str = "secret123"):
        response = await client.post(
            "/api/auth/register",
            json={
                "name": name,
                "email": email or f"user-{uuid4().hex[:8]}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["token"], body["user"]

    return _register


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
