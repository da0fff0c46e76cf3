"""
PhotoMemo Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment is set before any photomemo import so the settings
       singleton, engine and password context are built for testing.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:       in-memory SQLite engine with all tables created
    ├── db_session:      AsyncSession on that engine
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── fake_storage:    object store double patched into the services
    ├── make_user:       factory that inserts a user with a known password
    ├── sample_image_bytes
    └── test_client:     HTTPX AsyncClient over the ASGI app, DB overridden
"""

import os

# Must run before photomemo is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["S3_BUCKET"] = "test-bucket"
os.environ["S3_BASE_URL"] = "https://cdn.test"
os.environ["MAX_LOGIN_ATTEMPTS"] = "3"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["COOKIE_SECURE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import photomemo.models  # noqa: F401
from photomemo.database import Base, get_db_session
from photomemo.models.user import User
from photomemo.security import get_password_hash

TEST_PASSWORD = "correct-horse"


@pytest_asyncio.fixture
async def db_engine():
    """One in-memory database per test; StaticPool keeps it on a single connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.get.return_value = post
        await post_service.get_post(mock_db_session, str(post.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_storage():
    """
    Stands in for the S3 facade wherever the services reference it.

    put_object / delete_object are AsyncMocks; set side_effect to simulate
    storage failures.
    """
    storage = MagicMock()
    storage.put_object = AsyncMock(return_value=None)
    storage.delete_object = AsyncMock(return_value=None)
    storage.is_configured = True
    with patch("photomemo.services.post_service.storage_service", storage), \
         patch("photomemo.services.file_service.storage_service", storage):
        yield storage


@pytest.fixture
def make_user(db_session):
    """Insert a user directly; the password is TEST_PASSWORD unless given."""

    async def _make_user(email="alice@example.com", password=TEST_PASSWORD, **fields) -> User:
        user = User(email=email, password_hash=get_password_hash(password), **fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest_asyncio.fixture
async def test_client(session_factory, fake_storage) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Requests get sessions from the test engine, with the same commit and
    rollback behavior as the production dependency.
    """
    from photomemo.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
