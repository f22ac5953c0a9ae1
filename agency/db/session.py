"""SQLAlchemy async engine and session utilities."""
from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from agency.core.config import DatabaseSettings

from .base import Base


def create_engine_from_settings(db_settings: DatabaseSettings) -> AsyncEngine:
    if not db_settings.url:
        raise RuntimeError("DATABASE_URL is not configured")
    return create_async_engine(db_settings.url, echo=db_settings.echo, future=True)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create any missing tables."""

    # Import registers every model on Base.metadata.
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(session_maker: async_sessionmaker) -> None:
    """Run a trivial query; raises if the database is unreachable."""

    async with session_maker() as session:
        await session.execute(text("SELECT 1"))
