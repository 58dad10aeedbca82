"""Async SQLAlchemy engine and session construction for the analytic store.

How to Use
===========
**Step 1: Build once at startup**::
    engine = build_engine(settings)
    sessions = build_sessionmaker(engine)

**Step 2: Create tables**::
    await init_db(engine)

**Step 3: Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- Nothing connects at import time; the engine opens connections lazily.
- Connection pooling is sized from settings and pre-pings stale connections.

Classes:
    Base:  SQLAlchemy declarative base for all models.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlink.config import Settings

__all__ = ["Base", "build_engine", "build_sessionmaker", "init_db", "close_db", "ping_db"]


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # Registers the url_analytics table on Base.metadata.
    import shortlink.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_db(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
