"""
Database engine, session factory and declarative base
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable on both SQLite and PostgreSQL columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(database_url, echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
AsyncSessionLocal = create_session_factory(engine)


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Create all tables that do not exist yet"""
    # Import models so they register on Base.metadata
    import app.models  # noqa: F401

    # SQLite will not create missing parent directories itself
    url = db_engine.url
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables ready ({db_engine.url.get_backend_name()})")


async def close_db(db_engine: AsyncEngine = engine) -> None:
    await db_engine.dispose()
    logger.info("Database connection closed")
