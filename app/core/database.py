from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from app.core.config import settings

# Pooled connections are re-checked before use
engine = create_async_engine(
    settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_pre_ping=True
)

# Keep loaded rows usable after commit, new feedback is returned right after insert
FeedbackSession = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


# Request-scoped session, overridden in tests
async def get_db():
    async with FeedbackSession() as session:
        yield session


# Metadata root for the feedback table and the Alembic migrations
class Base(DeclarativeBase):
    pass
