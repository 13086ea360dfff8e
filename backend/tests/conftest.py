"""
ReportDesk Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh SQLite database (aiosqlite) in its own tmp_path,
       so repository and service tests run real SQL without a PostgreSQL server.

Fixture Hierarchy (all function-scoped):
    ├── db_engine: async engine on a per-test SQLite file, tables created
    ├── db_session: AsyncSession bound to db_engine
    ├── mock_db_session: AsyncMock session for failure injection
    ├── headers_for: builds identity headers for a caller
    └── test_client: HTTPX AsyncClient wired to the app, DB dependency overridden
"""

import os
import tempfile

# Must be set before any reportdesk import: settings and the module-level
# engine are built at import time.
_TEST_DIR = tempfile.mkdtemp(prefix="reportdesk_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from typing import AsyncGenerator, Dict, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reportdesk.database import Base, get_db_session
from reportdesk.models.report import Report  # noqa: F401


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Async engine on a throwaway SQLite file with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/reports.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    A real session for repository and service tests.

    Tests flush through the repository and never commit; the database
    file is discarded with tmp_path.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        await ReportRepository(mock_db_session).find_many(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def headers_for():
    """Builds the gateway identity headers for a caller."""

    def _headers(user_id: str, roles: Iterable[str] = ()) -> Dict[str, str]:
        headers = {"X-User-ID": user_id}
        if roles:
            headers["X-User-Roles"] = ",".join(roles)
        return headers

    return _headers


@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    Provides an async HTTP test client for endpoint testing.

    get_db_session is overridden so requests commit into the per-test
    database, one session per request like in production.

    Usage:
        async def test_list(test_client, headers_for):
            response = await test_client.get("/api/v1/reports", headers=headers_for("alice"))
            assert response.status_code == 200
    """
    from reportdesk.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def _session_override():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
