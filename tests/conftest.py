"""
WiseNotes API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for error-path unit tests
    ├── db_engine / db_session: in-memory SQLite with the real schema
    ├── notebook_service / note_service: services with the configured limits
    ├── make_token: mints bearer tokens the app accepts
    └── test_client: HTTPX AsyncClient against a fresh app bound to db_engine
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any wisenotes imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["DB_CREATE_ALL"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-real-0123456789abcdef"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["TITLE_MAX_LENGTH"] = "25"
os.environ["CONTENT_MAX_LENGTH"] = "500"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from wisenotes.config import settings
from wisenotes.database import create_schema, enable_sqlite_foreign_keys, get_db_session
from wisenotes.services.note_service import NoteService
from wisenotes.services.notebook_service import NotebookService
from wisenotes.services.validation import ValidationPolicy


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = notebook
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def policy():
    return ValidationPolicy(settings.validation_limits)


@pytest.fixture
def notebook_service(policy):
    return NotebookService(policy)


@pytest.fixture
def note_service(policy):
    return NoteService(policy)


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the full schema.

    StaticPool keeps one connection alive so every session sees the same
    database; foreign keys are enforced like in production.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_token():
    """
    Returns a function minting signed bearer tokens.

    Usage:
        headers = {"Authorization": f"Bearer {make_token('alice')}"}
    """

    def _make(sub="user-1", expires_in=timedelta(hours=1), secret=None, **extra_claims):
        claims = {"exp": datetime.now(timezone.utc) + expires_in, **extra_claims}
        if sub is not None:
            claims["sub"] = sub
        return jwt.encode(
            claims, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

    return _make


@pytest.fixture
def auth_headers(make_token):
    def _headers(sub="user-1"):
        return {"Authorization": f"Bearer {make_token(sub)}"}

    return _headers


@pytest.fixture
def app(session_factory):
    """A fresh application whose request sessions use the in-memory engine."""
    from wisenotes.main import create_app

    application = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
