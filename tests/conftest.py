"""Pytest configuration and fixtures.

Database Handling:
- If TEST_DATABASE_URL is set (e.g. postgresql+asyncpg://...), tests run against it
- Otherwise a throwaway SQLite file is used through aiosqlite
- Tables are created and dropped around every test that touches the database
"""

import os
import tempfile
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

_sqlite_dir = tempfile.mkdtemp(prefix="authgate-tests-")


def _get_database_url() -> str:
    explicit_url = os.environ.get("TEST_DATABASE_URL")
    if explicit_url:
        return explicit_url
    return f"sqlite+aiosqlite:///{os.path.join(_sqlite_dir, 'authgate_test.db')}"


# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = _get_database_url()
os.environ["JWT_SECRET_KEY"] = "test-signing-key-" + "0" * 32
os.environ["JWT_TOKEN_TTL_HOURS"] = "72"
# Cheapest Argon2 time cost keeps the suite fast
os.environ["PASSWORD_HASH_COST"] = "1"
os.environ["REVOCATION_SWEEP_INTERVAL_SECONDS"] = "0"

# Test user credentials
TEST_USERNAME = "alice"
TEST_EMAIL = "alice@x.com"
TEST_PASSWORD = "pw123"


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with a fresh schema for one test."""
    from authgate.core.database import Base
    from authgate import models  # noqa: F401

    engine = create_async_engine(
        _get_database_url(),
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Independent sessions on the test database, for cross-session checks."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from authgate.core.database import get_db
    from authgate.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Service Fixtures ---


@pytest.fixture
def auth_config():
    """The same auth configuration the app under test uses."""
    from authgate.core import get_settings

    return get_settings().auth_config()


@pytest.fixture
def auth_service(db_session, auth_config):
    """AuthService bound to the test session."""
    from authgate.services.auth import AuthService

    return AuthService(db_session, auth_config, timeout=5.0)


@pytest.fixture
def user_factory(db_session, auth_config):
    """Factory for creating committed test users."""
    from authgate.models.user import User
    from authgate.services.passwords import CredentialHasher

    hasher = CredentialHasher(auth_config)

    async def _create_user(
        username: str = TEST_USERNAME,
        email: str = TEST_EMAIL,
        password: str = TEST_PASSWORD,
    ) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=hasher.hash(password),
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def test_user(user_factory):
    """Create the default test user."""
    return await user_factory()


@pytest.fixture
def auth_token(test_user, auth_config) -> str:
    """A freshly issued token for the test user."""
    from authgate.services.tokens import TokenIssuer

    return TokenIssuer(auth_config).issue(test_user.id, test_user.email)


@pytest.fixture
def auth_headers(auth_token) -> dict[str, str]:
    """Headers with the bearer token for authenticated requests."""
    return {"Authorization": f"Bearer {auth_token}"}


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Mark tests as 'integration' when they use database fixtures, 'unit' otherwise."""
    integration_fixtures = {"db_session", "db_engine", "async_client", "session_factory"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
