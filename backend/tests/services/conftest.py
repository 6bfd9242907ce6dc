"""Service test fixtures: async DB, FastAPI test clients and fake providers.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for the access middleware and cron log, which open their own sessions
    - get_providers overridden with FakeProviders; no test reaches the network

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (the upsert helpers pick the sqlite dialect insert)
    - `client` talks to host "localhost", which the access middleware never asks for a key;
      `external_client` uses a public host to exercise API-key handling
"""

import pytest
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_providers
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
import app.infrastructure.database as db_module
import app.models  # noqa: F401
from app.main import app
from tests.services.fake_providers import FakeProviders

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}
ADMIN_HEADERS = {"Authorization": "Bearer test-admin-key"}


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def providers():
    """FakeProviders served to every cron/admin route; configure per test."""
    return FakeProviders()


@pytest.fixture
async def app_overrides(test_engine, test_session_factory, providers):
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    async def override_get_providers():
        yield providers

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_providers] = override_get_providers

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    yield

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def client(app_overrides):
    """Test client on a localhost host: unlimited access, no API key needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost:8000",
    ) as c:
        yield c


@pytest.fixture
async def external_client(app_overrides):
    """Test client on a public host: data routes require an API key."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://api.example.com",
    ) as c:
        yield c
