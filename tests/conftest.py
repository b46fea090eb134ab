"""
Heritage Numérique Backend — Test Configuration (conftest.py)
==============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything from `heritage` is
       imported, so Settings picks up the test values. API tests run the
       real application against an in-memory SQLite database through
       httpx's ASGITransport; unit tests use a mocked AsyncSession.

Fixture Hierarchy:
    Unit tests:
    ├── mock_db_session: AsyncMock session (no database)
    ├── temp_storage: Temporary directory for file operations
    └── sample_image_bytes / sample_audio_bytes: Fake upload payloads

    API tests:
    ├── db_engine: In-memory SQLite with every table created
    ├── session_factory: Sessions bound to db_engine
    ├── test_client: HTTPX AsyncClient wired to the app, get_db_session overridden
    ├── superadmin / admin_headers: Platform administrator and its bearer header
    ├── register: Coroutine registering an account, returns (body, headers)
    ├── category: A category created by the super admin
    └── family: A family with its ADMIN founder
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any heritage import: settings are read once at import time
_TEST_DIR = tempfile.mkdtemp(prefix="heritage_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/health.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "uploads")
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["INVITATION_SWEEP_INTERVAL"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

API = "/api/v1"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        async def test_mark_read(mock_db_session):
            mock_db_session.get.return_value = notification
            await notification_service.mark_as_read(mock_db_session, nid, uid)
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9)."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_audio_bytes():
    """An ID3 header followed by padding; only the extension is ever checked."""
    return b"ID3\x03\x00\x00\x00\x00\x00\x00" + b"\x00" * 64


# ══════════════════════════════════════════════════════════════════════════
# API Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    from heritage.database import Base
    import heritage.models  # noqa: F401

    # StaticPool: every session shares the single in-memory connection
    engine = create_async_engine(
        "sqlite+aiosqlite://",
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
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from heritage.database import get_db_session
    from heritage.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def superadmin(session_factory):
    from heritage.services.auth_service import auth_service

    async with session_factory() as session:
        user = await auth_service.ensure_superadmin(session, "admin@heritage.example.com", "admin-password")
        await session.commit()
        return user


@pytest.fixture
def admin_headers(superadmin):
    from heritage.security import create_access_token

    return bearer(create_access_token(superadmin))


@pytest.fixture
def register(test_client):
    """Returns a coroutine: await register("awa@example.com") → (auth body, headers)."""

    async def _register(email, first_name="Awa", last_name="Traoré", password="secret123", **extra):
        response = await test_client.post(
            f"{API}/auth/register",
            json={
                "email": email,
                "password": password,
                "last_name": last_name,
                "first_name": first_name,
                **extra,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body, bearer(body["access_token"])

    return _register


@pytest_asyncio.fixture
async def category(test_client, admin_headers):
    response = await test_client.post(
        f"{API}/categories",
        json={"name": "Contes du soir", "description": "Evening tales"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def family(test_client, register):
    """A family whose founder (ADMIN) is founder@example.com."""
    founder, headers = await register("founder@example.com", first_name="Moussa", last_name="Diarra")
    response = await test_client.post(
        f"{API}/families",
        json={"name": "Diarra", "region": "Ségou", "ethnicity": "Bambara"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return {"id": response.json()["id"], "admin": founder, "admin_headers": headers}
