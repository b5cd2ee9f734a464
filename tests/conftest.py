"""
Pytest configuration and fixtures for the SOC dashboard core tests
"""
import os
import tempfile

# Settings are read at import time, so the environment has to be in place first
_TEST_DIR = tempfile.mkdtemp(prefix="socdash-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'app.db')}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-principal-tokens")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENABLE_OTEL_EXPORTER", "false")
os.environ.setdefault("DEMO_FEED_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from socdash.main import app
from socdash.auth.security import create_access_token
from socdash.db.database import get_db, Base, build_engine, build_session_factory
from socdash.db.crud import user as user_crud
from socdash.db.models.enums import UserRole
from socdash.realtime import SessionRegistry, Broadcaster


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh sqlite database file per test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    return SessionRegistry(queue_size=10)


@pytest.fixture
def broadcaster(registry):
    return Broadcaster(registry, scope="global")


@pytest.fixture
async def client(session_factory, registry, broadcaster) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the per-test database and a fresh broadcaster"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_registry = registry
    app.state.broadcaster = broadcaster

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def analyst_user(db_session):
    return await user_crud.create_user(db_session, "analyst", "analyst@soc.example", UserRole.SOC_ANALYST)


@pytest.fixture
async def admin_user(db_session):
    return await user_crud.create_user(db_session, "admin", "admin@soc.example", UserRole.ADMINISTRATOR)


@pytest.fixture
def analyst_headers():
    token = create_access_token("analyst", UserRole.SOC_ANALYST, user_id=1)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    token = create_access_token("admin", UserRole.ADMINISTRATOR, user_id=2)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alert_draft():
    """Valid alert draft with geolocation"""
    return {
        "alert_type": "Port Scan",
        "severity": "High",
        "source_ip": "203.0.113.7",
        "destination_ip": "192.168.1.100",
        "source_port": 51515,
        "destination_port": 22,
        "protocol": "TCP",
        "description": "Port Scan detected from 203.0.113.7",
        "raw_event": {"source": "ids", "signature": 2001219},
        "country_code": "cn",
        "city": "Beijing",
        "latitude": 39.9042,
        "longitude": 116.4074,
    }
