"""
Async SQLAlchemy engine and session factory.
"""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from database.models import Base


def create_engine(database_url: str) -> AsyncEngine:
    """Build an engine; pool sizing only applies to server databases."""
    options: Dict[str, Any] = {"echo": False}
    if not database_url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20, pool_recycle=3600)
    return create_async_engine(database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create the ``users`` table (and its unique email index) if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
