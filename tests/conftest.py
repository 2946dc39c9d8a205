"""
Shared test fixtures for the GeoClock test suite.

Every test gets its own in-memory aiosqlite database; the app's ``get_db``
dependency is pointed at it and admin auth is overridden.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEOFENCE_POLICY"] = "STRICT"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from geoclock.api.v1.deps import get_current_active_user, get_db, require_admin
from geoclock.core.security import get_pin_hash
from geoclock.db.base import Base
from geoclock.main import app
from geoclock.models.location import Location
from geoclock.models.user import User
from geoclock.models.worker import Worker

# Hashing is slow; reuse one hash for the default test PIN.
TEST_PIN = "1234"
_TEST_PIN_HASH = get_pin_hash(TEST_PIN)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


# ── Data helpers ────────────────────────────────────────────────────
@pytest.fixture
def make_worker(db_session: AsyncSession):
    async def _make(
        code: str = "W001",
        name: str = "Test Worker",
        pin: str = TEST_PIN,
        active: bool = True,
    ) -> Worker:
        worker = Worker(
            name=name,
            employee_code=code,
            pin_hash=_TEST_PIN_HASH if pin == TEST_PIN else get_pin_hash(pin),
            is_active=active,
        )
        db_session.add(worker)
        await db_session.commit()
        await db_session.refresh(worker)
        return worker

    return _make


@pytest.fixture
def make_location(db_session: AsyncSession):
    async def _make(
        code: str,
        lat: float = 0.0,
        lng: float = 0.0,
        radius: float = 200.0,
        name: str | None = None,
        active: bool = True,
    ) -> Location:
        location = Location(
            name=name or code.title(),
            code=code,
            lat=lat,
            lng=lng,
            radius_meters=radius,
            is_active=active,
        )
        db_session.add(location)
        await db_session.commit()
        await db_session.refresh(location)
        return location

    return _make


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user():
    return User(id=1, email="test@example.com", is_active=True, role="admin")


async def _override_require_admin():
    return User(id=1, email="admin@example.com", is_active=True, role="admin")


app.dependency_overrides[get_current_active_user] = _override_get_current_active_user
app.dependency_overrides[require_admin] = _override_require_admin
