"""
Test Configuration — Fixtures for the registry store, service, DB and test client.

Each test gets a fresh in-memory SQLite database (StaticPool keeps the
single connection alive so every session sees the same tables).
"""

import asyncio
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_clock, get_current_user, get_db, get_orchestrator, get_registry_lock
from api.main import app
from core.clock import ManualClock
from core.config import Settings
from db.models import create_registry_schema
from optimization.cycle import OptimizationCycleOrchestrator
from registry.service import SupplyChainRegistry
from registry.store import InMemoryRegistryStore, SqlRegistryStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER = "registry-owner"
OUTSIDER = "someone-else"
START_TICK = 100_000


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(create_registry_schema)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(database_url=TEST_DATABASE_URL, owner_principals=[OWNER], app_env="test")


@pytest.fixture
def clock():
    return ManualClock(tick=START_TICK)


@pytest.fixture
def memory_store():
    return InMemoryRegistryStore()


@pytest.fixture
def registry(memory_store, settings, clock):
    """Registry service over the in-memory store."""
    return SupplyChainRegistry(memory_store, settings=settings, clock=clock)


@pytest.fixture
def sql_registry(test_db, settings, clock):
    """Registry service over the SQLAlchemy store."""
    return SupplyChainRegistry(SqlRegistryStore(test_db), settings=settings, clock=clock)


@pytest.fixture
async def seeded_registry(registry):
    """Two suppliers, two products, one forecast."""
    good = await registry.register_supplier(OWNER, "Acme Components", 90, 90, 80, 70)
    shaky = await registry.register_supplier(OWNER, "Budget Parts", 50, 60, 90, 40)
    widget = await registry.add_product(OWNER, "Widget", "hardware", 10, 5, good)
    gadget = await registry.add_product(OWNER, "Gadget", "hardware", 100, 2, shaky)
    await registry.update_demand_prediction(OWNER, widget, 1, 50, 90)
    return {
        "registry": registry,
        "good_supplier": good,
        "shaky_supplier": shaky,
        "widget": widget,
        "gadget": gadget,
    }


@pytest.fixture
def mock_user():
    """Authenticated registry owner."""
    return {"sub": OWNER}


@pytest.fixture
async def client(test_db, mock_user, clock):
    """Create an async test client with dependency overrides."""

    async def override_get_db():
        yield test_db

    def override_get_current_user():
        return mock_user

    orchestrator = OptimizationCycleOrchestrator()
    lock = asyncio.Lock()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_registry_lock] = lambda: lock

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
