"""
PlaceShare Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches persistence gets its own SQLite file database
       (aiosqlite) with the full schema created from the ORM metadata.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine / session_factory / db_session: per-test SQLite database
    ├── make_user: inserts a user directly through the ORM
    ├── auth_headers: Authorization header for a user
    ├── temp_storage: temporary directory for file operations
    ├── sample_image_bytes: PNG header bytes for upload tests
    └── test_client: HTTPX AsyncClient wired to the per-test database
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="placeshare_db_"), "health.db")
)
os.environ["GOOGLE_API_KEY"] = "test-key-not-real"
os.environ["JWT_SECRET_KEY"] = "test-secret-not-real"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="placeshare_test_")
os.environ["LOG_LEVEL"] = "WARNING"

from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base, get_db_session
from app.models.user import User
from app.services.auth_service import credential_gate, hash_password


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A fresh SQLite database file per test.

    A file (not :memory:) so that several sessions can hold their own
    connections, which the concurrent-create tests rely on.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'placeshare.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory):
    """
    Factory fixture inserting a committed user.

    Usage:
        user = await make_user(name="Ada")
    """
    async def _make_user(name: str = "Ada", email: str = None, password: str = "secret123") -> User:
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"{uuid4().hex[:8]}@example.com",
                # Low iteration count keeps the suite fast
                password_hash=hash_password(password, iterations=1_000),
                image_path="images/avatar.png",
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = credential_gate.issue_token(user.id, user.email)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    PNG signature followed by an IHDR chunk header.

    Enough for libmagic to report image/png; not a decodable picture.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00"
        b"\x90wS\xde"
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    get_db_session is overridden so requests use the per-test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from app.main import app

    async def _override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
