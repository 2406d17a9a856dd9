"""Database engine and sessions for config_source=database."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from model_gateway.core.config import settings
from model_gateway.db.models import Base


def get_async_database_url(url: str | None = None) -> str:
    """postgresql:// -> postgresql+asyncpg:// (sqlite+aiosqlite:// is kept as is)."""
    url = url or settings.database_url
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def engine_options(url: str) -> dict:
    # SQLite uses a single-connection pool without sizing options
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


DATABASE_URL = get_async_database_url()

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug and settings.environment != "test",
    **engine_options(DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def create_tables() -> None:
    """Create ai_models, model_activation_rules, default_pointers and the other tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_database() -> float:
    """Run SELECT 1 and return the round-trip in milliseconds.

    Raises:
        Exception: whatever the driver raises when the database is unreachable
    """
    start = time.perf_counter()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return (time.perf_counter() - start) * 1000


async def close_db() -> None:
    await engine.dispose()


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session committed on success, rolled back on error (CLI and adapters)."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, usage log rows included."""
    async with get_db_context() as session:
        yield session


def get_session_factory():
    """FastAPI dependency: short sessions opened per SQL operation.

    Used by routes that wait on provider calls, so no pooled connection is
    held while the fallback cascade runs.
    """
    return get_db_context
