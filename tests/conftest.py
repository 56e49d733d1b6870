import os

# Point the app at SQLite before anything imports the settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("OPENAI_API_KEY", "")

import json
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core import models
from app.core.cache import SummaryCache, get_summary_cache
from app.core.database import Base, get_db
from app.ai_feature.service import SummaryResult, get_summarizer
from tests.fakes import FakeRedis, GOOD_AI_PAYLOAD, StubSummarizer

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# Fresh in-memory database for every test
@pytest_asyncio.fixture(scope="function")
async def db_session():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def summary_cache(fake_redis):
    return SummaryCache(fake_redis, key="summary:test", ttl_seconds=3600)


@pytest.fixture
def summarizer():
    return StubSummarizer(SummaryResult.success(json.dumps(GOOD_AI_PAYLOAD)))


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, summary_cache, summarizer):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_summary_cache] = lambda: summary_cache
    app.dependency_overrides[get_summarizer] = lambda: summarizer

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Feedback rows with explicit, strictly increasing timestamps
@pytest.fixture
def add_feedback(db_session: AsyncSession):
    base_time = datetime(2026, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    async def _add(**overrides):
        counter["n"] += 1
        fields = {
            "user_name": "Tester",
            "channel": "Web",
            "urgency": "high",
            "theme": "product",
            "value": "revenue",
            "sentiment": "positive",
            "message": f"Feedback number {counter['n']}",
            "created_at": base_time + timedelta(minutes=counter["n"]),
        }
        fields.update(overrides)
        entry = models.Feedback(**fields)
        db_session.add(entry)
        await db_session.commit()
        await db_session.refresh(entry)
        return entry

    return _add
