"""
Posts API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets its own Settings pointing at a fresh SQLite file under
       tmp_path, so tests never share rows or touch a developer database.

Fixture Hierarchy (all function-scoped):
    test_settings ─┬─ database ── db_session / session_factory
                   ├─ auth_service ── auth_headers
                   └─ app ── test_client
    post_service, mock_db_session, sample_post_data: standalone
"""

import os

# Set before any posts_api import so settings read from the environment
# (get_settings, Alembic env.py) never pick up a developer configuration.
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-at-least-32-bytes"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from posts_api.config import Settings
from posts_api.database import Database
from posts_api.main import create_app
from posts_api.schemas.post import UserInfo
from posts_api.services.auth_service import AuthService
from posts_api.services.post_service import PostService

TEST_JWT_SECRET = "test-secret-key-that-is-at-least-32-bytes"


def make_settings(tmp_path, **overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'posts.db'}",
        "jwt_secret": TEST_JWT_SECRET,
        "environment": "test",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


# ══════════════════════════════════════════════════════════════════════════
# Persistence
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(test_settings):
    """A Database with the schema created, disposed after the test."""
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """A plain AsyncSession; PostService commits its own writes."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def session_factory(database):
    """For tests that need a second, independent session."""
    return database.session_factory


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for failure-path tests.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        with pytest.raises(StorageError):
            await post_service.list_posts(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Services & Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def post_service():
    return PostService()


@pytest.fixture
def auth_service(test_settings):
    return AuthService(test_settings)


@pytest.fixture
def auth_headers(auth_service):
    """A valid bearer header signed with the test secret."""
    token = auth_service.issue_token(UserInfo(email="a@b.com", role="user"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_post_data():
    return {
        "title": "T",
        "description": "D",
        "photo": "http://x",
        "body": "B",
    }


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(test_settings):
    """
    A fresh application bound to this test's database.

    ASGITransport does not run the lifespan, so the schema is created here.
    """
    application = create_app(test_settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False lets tests observe the 500 response produced
    by the catch-all handler instead of the re-raised exception.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
