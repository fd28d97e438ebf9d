import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.database import Base, get_db, enable_sqlite_foreign_keys
from app.exceptions import ExternalServiceError, ErrorCode
from app.services.ai_gateway import get_ai_gateway

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"
FK_TEST_DATABASE_URL = "sqlite+aiosqlite:///./test_fk.db"


class FakeGateway:
    """Stands in for the generation service.

    ``contents`` are handed out in order, one per chat_completion call; an
    exception in the list is raised instead. Every call is recorded.
    """

    def __init__(self, contents=None):
        self.contents = list(contents or [])
        self.calls = []

    async def chat_completion(self, messages, max_tokens=None, temperature=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        if not self.contents:
            raise ExternalServiceError("Generation", "no scripted content", code=ErrorCode.AI_SERVICE_ERROR)
        content = self.contents.pop(0)
        if isinstance(content, Exception):
            raise content
        return {"content": content, "usage": {}, "model": "fake-model"}

    async def health_check(self):
        return {"status": "healthy", "model": "fake-model", "base_url": "http://fake"}

    async def close(self):
        pass


async def _create_engine(url: str, foreign_keys: bool = False):
    engine = create_async_engine(url, poolclass=NullPool)

    if foreign_keys:
        enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    return engine


async def _session_for(url: str, foreign_keys: bool = False):
    engine = await _create_engine(url, foreign_keys=foreign_keys)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    async for session in _session_for(TEST_DATABASE_URL):
        yield session


@pytest_asyncio.fixture
async def fk_db():
    """Test database that enforces foreign keys, like the production database."""
    async for session in _session_for(FK_TEST_DATABASE_URL, foreign_keys=True):
        yield session


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, fake_gateway: FakeGateway):
    """Create test client with overridden database and generation service."""

    async def override_get_db():
        yield test_db

    async def override_get_ai_gateway():
        return fake_gateway

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_gateway] = override_get_ai_gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
