"""Pytest configuration and shared fixtures.

This module provides:
- In-memory SQLite database (aiosqlite) recreated for every test
- Async session fixtures for repository/service tests
- FastAPI test client for route tests
- Signed local credentials for authenticated requests
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-ecotrack-api-suite-0123456789")
os.environ.setdefault("CLERK_SECRET_KEY", "")

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import jwt
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.config import clear_settings_cache, get_settings
from core.database import Base
from core.wide_event import init_wide_event

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Module-level constant for tests that need to set up data directly
TEST_USER_ID = "user_test_123456789"
TEST_USER_EMAIL = "tester@example.com"


@pytest.fixture(autouse=True)
def setup_wide_event():
    """Initialize wide_event context for all tests.

    In production this is done by middleware; in tests we do it here.
    """
    init_wide_event()
    yield


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Create a fresh in-memory database engine for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide a database session for each test."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def test_user_id() -> str:
    return TEST_USER_ID


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Sign a local credential the way the account service does."""

    def _make(sub: str = TEST_USER_ID, **claims: Any) -> str:
        settings = get_settings()
        return jwt.encode(
            {"sub": sub, **claims},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

    return _make


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(test_engine: AsyncEngine) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test database (lifespan is not run)."""
    from main import app as fastapi_app

    fastapi_app.state.engine = test_engine
    fastapi_app.state.session_maker = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    fastapi_app.state.init_done = True
    fastapi_app.state.init_error = None

    yield fastapi_app


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing routes."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def authenticated_client(
    app: FastAPI,
    make_token: Callable[..., str],
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client carrying a valid local credential for TEST_USER_ID."""
    token = make_token(TEST_USER_ID, email=TEST_USER_EMAIL, name="Test User")
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio (required by httpx)."""
    return "asyncio"
