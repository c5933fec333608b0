"""Async engine and session dependency.

Every order, payment event and audit row lives in one PostgreSQL database;
status transitions serialize on the order row lock (SELECT ... FOR UPDATE).
"""
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request.

    Services own the transaction boundary: they commit on success and roll
    back on error.
    """
    async with async_session_factory() as session:
        yield session


async def check_database() -> None:
    """Fail fast at startup when the order store is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
