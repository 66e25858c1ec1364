"""
Shared test fixtures for the identity backend test suite.

Every test gets its own in-memory SQLite database (aiosqlite + AsyncSession).
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
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt minimum, keeps the suite fast
os.environ["TOKEN_SWEEP_INTERVAL_SECONDS"] = "0"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.db.base import Base
from app.db.session import build_session_factory
from app.main import app
from app.models.user import User
from app.stores.token_store import TokenStore
from app.stores.user_store import UserStore

DEFAULT_PASSWORD = "correct horse battery staple"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
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
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct store calls in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def token_store(db_session: AsyncSession) -> TokenStore:
    return TokenStore(db_session)


@pytest.fixture
def user_store(db_session: AsyncSession, token_store: TokenStore) -> UserStore:
    return UserStore(db_session, token_store)


@pytest.fixture
def make_user(user_store: UserStore):
    """Factory: ``await make_user(email=..., role=...)``."""

    async def _make(
        email: str = "ada@example.com",
        password: str = DEFAULT_PASSWORD,
        **extra,
    ) -> User:
        fields = {"first_name": "Ada", "last_name": "Lovelace", "phone": "+100000000"}
        fields.update(extra)
        return await user_store.create(email=email, password=password, **fields)

    return _make


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app and the per-test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login(async_client: AsyncClient):
    """Factory: POST /auth/login and return the raw response."""

    async def _login(email: str, password: str = DEFAULT_PASSWORD, device: str = "pytest-device", ip: str = "10.0.0.1"):
        return await async_client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
            headers={"X-Device-Id": device, "X-Forwarded-For": ip},
        )

    return _login


@pytest.fixture
async def admin_headers(make_user, login) -> dict:
    """Bearer headers for a freshly created admin account."""
    await make_user(email="root@example.com", role="admin")
    resp = await login("root@example.com")
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['data']['token']}"}
