import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from roster.main import app
from roster.core.database import get_async_session
from roster.models import Employee
from roster.models.base import Base

# In-memory database shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

ACTOR_HEADERS = {"X-User-Id": "manager-1"}


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
async def employees(session):
    """Two active employees and an inactive one"""
    session.add_all([
        Employee(user_id="u1", first_name="Ada", last_name="Byron"),
        Employee(user_id="u2", first_name="Alan", last_name="Turing"),
        Employee(user_id="u3", first_name="Old", last_name="Account", is_active=False),
    ])
    await session.commit()
    return ["u1", "u2"]


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def actor_headers() -> dict:
    return dict(ACTOR_HEADERS)
