"""
测试公共夹具

每个测试使用独立的内存 SQLite（aiosqlite + StaticPool），服务层测试直接在同一会话上调用，
不提交事务。
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from backend.db.dao import UserDAO
from backend.db.models import Base
from backend.models import StoryCreate
from backend.services.story_service import story_service
from backend.services.participant_service import participant_service


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fast_password_hash(monkeypatch):
    """bcrypt 太慢，服务层测试不需要真实哈希"""
    monkeypatch.setattr("backend.db.dao.user_dao.get_password_hash", lambda password: f"hashed:{password}")


@pytest.fixture
def make_user(session, fast_password_hash):
    async def _make(username: str, email: str = None):
        return await UserDAO.create(
            session,
            username=username,
            email=email or f"{username}@example.com",
            password="secret123",
        )
    return _make


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture
async def carol(make_user):
    return await make_user("carol")


@pytest.fixture
def make_story(session):
    async def _make(author, members=(), **overrides):
        fields = dict(
            title="The Lighthouse",
            description="The lamp went dark at midnight.",
            genre="Mystery",
            word_limit=100,
            character_limit=0,
        )
        fields.update(overrides)
        result = await story_service.create_story(session, author.id, StoryCreate(**fields))
        assert result.success, result.error
        story_id = result.data["id"]
        for member in members:
            added = await participant_service.add_participant(session, story_id, member.id)
            assert added.success, added.error
        return story_id
    return _make


def words(n: int) -> str:
    return " ".join(["word"] * n)
