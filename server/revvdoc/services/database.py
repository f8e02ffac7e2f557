"""Database connection and session management."""

from typing import AsyncGenerator

from revvdoc.config import settings
from revvdoc.models.base import Base
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

engine = None
async_session_maker = None


async def init_db():
    """Initialize database engine and create tables."""
    global engine, async_session_maker

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
    )

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database engine."""
    global engine
    if engine:
        await engine.dispose()


def new_session() -> AsyncSession:
    """Open a standalone session, for work that outlives a request."""
    if async_session_maker is None:
        raise RuntimeError("Database not initialized - call init_db() first")
    return async_session_maker()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with new_session() as session:
        yield session
