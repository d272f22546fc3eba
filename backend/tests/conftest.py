import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stockwatch.db.models import Base


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.expirations[key] = ttl

    def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr("stockwatch.cache.get_client", lambda: fake)
    monkeypatch.setattr("stockwatch.invalidation.get_client", lambda: fake)
    monkeypatch.setattr("stockwatch.auth.session.get_client", lambda: fake)
    return fake


@pytest.fixture
def open_database():
    """Returns a coroutine creating a fresh in-memory database.

    Must be awaited inside the test's own event loop; the caller disposes
    the returned engine.
    """

    async def _open():
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        sessionmaker = async_sessionmaker(engine, autoflush=False, expire_on_commit=False)
        return engine, sessionmaker

    return _open
