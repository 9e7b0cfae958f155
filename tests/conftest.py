"""Shared test fixtures: settings, async database, in-memory stores, fake provider, app client."""

import time
import uuid
from collections.abc import AsyncGenerator, Callable, Sequence

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from address_verifier.core.config import Settings
from address_verifier.core.security import hash_password
from address_verifier.lib.locality import BaseLocalityClient, Locality
from address_verifier.main import create_app
from address_verifier.models.base import Base
from address_verifier.models.user import User
from address_verifier.schemas.auth import UserSession
from address_verifier.services.audit_service import AuditLogSink
from address_verifier.services.session_service import session_key

TEST_PASSWORD = "Str0ng!Pass"


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore with per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> tuple[str, float] | None:
        item = self._data.get(key)
        if item is None:
            return None
        if item[1] <= self._clock():
            del self._data[key]
            return None
        return item

    async def get(self, key: str) -> str | None:
        item = self._live(key)
        return item[0] if item else None

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        self._data[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def incr(self, key: str, *, ttl_seconds: int) -> int:
        item = self._live(key)
        count = int(item[0]) + 1 if item else 1
        self._data[key] = (str(count), self._clock() + ttl_seconds)
        return count

    def keys(self) -> list[str]:
        return list(self._data)


class FakeLocalityClient(BaseLocalityClient):
    """Locality client returning canned localities (or raising) and recording calls."""

    def __init__(self, localities: Sequence[Locality] = (), error: Exception | None = None) -> None:
        self.localities = list(localities)
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def lookup(self, postcode: str, state: str) -> list[Locality]:
        self.calls.append((postcode, state))
        if self.error is not None:
            raise self.error
        return list(self.localities)


def make_locality(suburb: str, state: str, postcode: str = "2000", **kwargs: object) -> Locality:
    """Build a Locality the way the provider sends it (``location`` field)."""
    return Locality.model_validate({"location": suburb, "state": state, "postcode": postcode, **kwargs})


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        redis_url="redis://localhost:6379/0",
        redis_token="test-token",
        password_hash_rounds=4,
        locality_api_url="https://locality.test/postcode/search.json",
        locality_api_key="test-api-key",
        environment="test",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_user(async_session: AsyncSession) -> User:
    """Create a sample user in the test database."""
    user = User(
        id=uuid.uuid4(),
        name="Test User",
        email="user@example.com",
        hashed_password=hash_password(TEST_PASSWORD, rounds=4),
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def locality_client() -> FakeLocalityClient:
    return FakeLocalityClient()


@pytest.fixture
def audit_sink(async_engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> AuditLogSink:
    return AuditLogSink(async_engine, session_factory)


@pytest.fixture
def app(
    settings: Settings,
    async_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    kv_store: InMemoryKeyValueStore,
    locality_client: FakeLocalityClient,
    audit_sink: AuditLogSink,
) -> FastAPI:
    """Full application wired to in-memory stores (lifespan is not run)."""
    app = create_app(settings)
    app.state.engine = async_engine
    app.state.session_factory = session_factory
    app.state.kv_store = kv_store
    app.state.locality_client = locality_client
    app.state.audit_sink = audit_sink
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False
    ) as client:
        yield client


@pytest.fixture
async def session_token(kv_store: InMemoryKeyValueStore, sample_user: User) -> str:
    """Store a session for ``sample_user`` and return its token."""
    token = "a" * 128
    payload = UserSession(id=str(sample_user.id), name=sample_user.name).model_dump_json()
    await kv_store.set(session_key(token), payload, ttl_seconds=3600)
    return token


@pytest.fixture
def authed_client(client: AsyncClient, settings: Settings, session_token: str) -> AsyncClient:
    """Test client carrying a valid session cookie."""
    client.cookies.set(settings.session_cookie_name, session_token)
    return client
