"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database and a fake Google client,
wired into the FastAPI app through dependency overrides.
"""
import os

# Settings are read on import; point them at throwaway values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SENTRY_DSN", "")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ielts_backend.config import Settings, get_settings
from ielts_backend.database import get_db
from ielts_backend.main import app
from ielts_backend.models.base import Base
from ielts_backend.oauth import GoogleIdentity, IdentityProviderError, get_identity_client

FRONTEND_URL = "https://front.example/IELTS-actual/"


class FakeGoogle:
    """Stands in for GoogleIdentityClient; records every provider call."""

    def __init__(self):
        self.identity = GoogleIdentity(
            subject="google-sub-1",
            email="ann@example.com",
            name="Ann Lee",
            picture="https://lh3.example/ann.png",
        )
        self.error = None
        self.calls = []

    def authorization_url(self) -> str:
        return "https://accounts.google.com/o/oauth2/v2/auth?client_id=test-client"

    async def exchange_code(self, code: str) -> GoogleIdentity:
        self.calls.append(("exchange_code", code))
        if self.error:
            raise self.error
        return self.identity

    async def verify_id_token(self, id_token: str) -> GoogleIdentity:
        self.calls.append(("verify_id_token", id_token))
        if self.error:
            raise self.error
        return self.identity

    def fail_with(self, message: str = "invalid_grant"):
        self.error = IdentityProviderError(message)


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        GOOGLE_CLIENT_ID="test-client",
        GOOGLE_CLIENT_SECRET="test-secret",
        GOOGLE_REDIRECT_URI="http://testserver/auth/google/callback",
        FRONTEND_URL=FRONTEND_URL,
    )


@pytest.fixture
def fake_google():
    return FakeGoogle()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def statements(engine):
    """SQL statements executed against the test database, in order."""
    executed = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        executed.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield executed
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def client(session_factory, fake_google, test_settings):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_identity_client] = lambda: fake_google
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
