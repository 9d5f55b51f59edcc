"""
Blog Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is pointed at throwaway locations BEFORE anything
       from `app` is imported, because settings and the service singletons
       read it at import time.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── temp_storage: temporary upload directory
    ├── sample_image_bytes: tiny PNG for upload tests
    ├── identity / other_identity: two authenticated callers
    ├── db_session_factory: fresh SQLite database with the schema created
    ├── test_client: HTTPX AsyncClient wired to that database
    └── register_and_login: helper returning a bearer token for a new user
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
_TEST_ROOT = tempfile.mkdtemp(prefix="blog_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_ROOT, 'app.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"  # minimum cost keeps hashing fast
os.environ["DB_CREATE_TABLES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator, Awaitable, Callable  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models  # noqa: E402,F401
from app.database import (  # noqa: E402
    Base,
    dispose_engine,
    enable_sqlite_foreign_keys,
    get_db_session,
)
from app.schemas.user import Identity  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        async def test_get_post(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = post
            result = await post_service.get_post(mock_db_session, str(post.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """The 8-byte PNG signature plus an IHDR chunk header. Not decodable, but non-empty."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


@pytest.fixture
def identity():
    return Identity(user_id=uuid4(), username="alice")


@pytest.fixture
def other_identity():
    return Identity(user_id=uuid4(), username="mallory")


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures (real SQLite database per test)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    A brand-new SQLite database with every table created.

    Each test gets its own file, so tests never see each other's users or
    posts, and unique indexes and foreign keys are enforced for real.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(db_session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden so requests use the per-test database with
    the same commit/rollback behaviour as production.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    # /health goes through the module-level engine; drop its connections
    # before this test's event loop closes
    await dispose_engine()


@pytest.fixture
def register_and_login(test_client) -> Callable[..., Awaitable[dict]]:
    """
    Registers a user and logs them in.

    Returns the login response body ({"token": ..., "user": {...}}).
    """

    async def _register_and_login(username: str, email: str, password: str = "pw1") -> dict:
        response = await test_client.post(
            "/api/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        response = await test_client.post(
            "/api/login",
            json={"email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _register_and_login
