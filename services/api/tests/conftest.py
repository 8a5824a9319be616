"""Shared fixtures.

Every test that touches the database gets a fresh SQLite file; Redis is
never connected, so token revocation is disabled unless a test patches it.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from itertools import count

import pytest
from httpx import ASGITransport, AsyncClient

from ratings_api.main import app
from ratings_api.models import Store, User, UserRole
from ratings_api.schemas.stores import CreateStoreRequest
from ratings_api.services.stores import create_store
from ratings_api.services.tokens import create_access_token
from ratings_api.services.users import create_user
from ratings_api.settings import get_settings
from ratings_api.stores.postgres import close_db, create_tables, drop_tables, get_session, init_db

TEST_PASSWORD = "Passw0rd!"

_sequence = count(1)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch):
    """Fast bcrypt and a fixed JWT secret for every test."""
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("REDIS_URL", "")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
async def db(tmp_path) -> AsyncGenerator[None, None]:
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables()
    yield
    await drop_tables()
    await close_db()


@pytest.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def make_user(db) -> Callable[..., Awaitable[User]]:
    """Factory: persist an account and return it (detached, attributes loaded)."""

    async def _make(
        role: UserRole = UserRole.USER,
        *,
        name: str | None = None,
        email: str | None = None,
        address: str = "1 Test Street, Testville",
        password: str = TEST_PASSWORD,
    ) -> User:
        n = next(_sequence)
        async with get_session() as session:
            return await create_user(
                session,
                name=name or f"Test Account Number {n}",
                email=email or f"account{n}@example.com",
                password=password,
                address=address,
                role=role,
            )

    return _make


@pytest.fixture
def make_store(db) -> Callable[..., Awaitable[Store]]:
    """Factory: persist a store for an existing store owner."""

    async def _make(
        owner: User,
        *,
        name: str | None = None,
        email: str | None = None,
        address: str = "100 Market Street, Testville",
    ) -> Store:
        n = next(_sequence)
        async with get_session() as session:
            return await create_store(
                session,
                CreateStoreRequest(
                    name=name or f"Test Store Number {n}",
                    email=email or f"store{n}@example.com",
                    address=address,
                    owner_id=owner.id,
                ),
            )

    return _make
