"""Pytest configuration and shared fixtures.

Database-backed tests run against a fresh in-memory SQLite database per test.
The environment is set before anything from learnsync is imported, because
the engine and settings are created at import time.
"""

import os
import tempfile

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="learnsync-logs-")
os.environ["PROVIDER_SERVICE_URL"] = "http://gateway.test"
os.environ["PROVIDER_SERVICE_KEY"] = "service-key"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from learnsync.database.base import Base
import learnsync.models  # noqa: F401


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: pure logic tests without a database")
    config.addinivalue_line("markers", "integration: tests backed by the in-memory SQLite database")


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


