"""
Database wiring for SQLAlchemyDataAccess.

The engine and session maker are built lazily from RelpathSettings
(RELPATH_DATABASE_URL, RELPATH_SQL_ECHO) and shared by every
SQLAlchemyDataAccess created without an explicit session maker.

Usage:
    await init_db(Base.metadata)
    data_access = SQLAlchemyDataAccess(registry, models=[Country, City, Person])
    ...
    await close_db()
"""

from __future__ import annotations

import logging

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config import get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Shared async engine for the configured database."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
        logger.info(f"Database engine created for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Shared session maker bound to get_engine()."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_maker


async def init_db(metadata: MetaData):
    """Create the tables of metadata on the shared engine."""
    async with get_engine().begin() as conn:
        await conn.run_sync(metadata.create_all)


async def close_db():
    """Dispose the shared engine; the next call to get_engine() builds a new one."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
