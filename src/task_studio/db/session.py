"""Database engine and session management utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings

SessionMaker = async_sessionmaker[AsyncSession]


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine described by ``settings``."""
    return create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> SessionMaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session(session_maker: SessionMaker) -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` for request-scoped work."""
    async with session_maker() as session:
        yield session


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables on ``engine``."""
    from .. import models  # noqa: F401  # register tables on the metadata

    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
