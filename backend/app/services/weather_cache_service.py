"""
Persistent weather cache

Durable city -> forecast cache backing the in-memory tier. One row per city;
writes replace the previous row in a single INSERT ... ON CONFLICT statement.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import utcnow
from app.models.weather_cache import WeatherCacheEntry

logger = logging.getLogger(__name__)


@dataclass
class CachedWeather:
    payload: Dict[str, Any]
    cached_at: datetime
    expires_at: datetime


class WeatherCacheRepository:
    """Database tier of the weather cache"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def get_fresh(self, city: str) -> Optional[CachedWeather]:
        """Return the cached forecast for ``city`` only while it has not expired"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(WeatherCacheEntry).where(
                    WeatherCacheEntry.city == city,
                    WeatherCacheEntry.expires_at > self.clock(),
                )
            )
            entry = result.scalar_one_or_none()
            return self._to_cached(entry)

    async def get_stale(self, city: str) -> Optional[CachedWeather]:
        """Return the most recent row for ``city`` ignoring expiry"""
        async with self.session_factory() as db:
            result = await db.execute(
                select(WeatherCacheEntry)
                .where(WeatherCacheEntry.city == city)
                .order_by(desc(WeatherCacheEntry.cached_at))
                .limit(1)
            )
            entry = result.scalar_one_or_none()
            return self._to_cached(entry)

    async def put(self, city: str, payload: Dict[str, Any], ttl_minutes: float = 60) -> bool:
        """Insert or replace the row for ``city``"""
        now = self.clock()
        record = {
            "city": city,
            "weather_data": payload,
            "cached_at": now,
            "expires_at": now + timedelta(minutes=ttl_minutes),
        }

        async with self.session_factory() as db:
            insert = self._insert_for(db)
            insert_stmt = insert(WeatherCacheEntry).values(record)
            upsert_stmt = insert_stmt.on_conflict_do_update(
                index_elements=["city"],
                set_={
                    key: insert_stmt.excluded[key]
                    for key in record.keys()
                    if key != "city"
                },
            )
            await db.execute(upsert_stmt)
            await db.commit()

        logger.debug(f"Stored weather cache row for {city} (ttl {ttl_minutes}m)")
        return True

    async def purge_expired(self) -> int:
        """Delete every expired row, returning how many were removed"""
        async with self.session_factory() as db:
            result = await db.execute(
                delete(WeatherCacheEntry).where(WeatherCacheEntry.expires_at <= self.clock())
            )
            removed = result.rowcount or 0
            await db.commit()

        logger.info(f"Cleared {removed} expired cache entries")
        return removed

    async def delete(self, city: str) -> int:
        async with self.session_factory() as db:
            result = await db.execute(
                delete(WeatherCacheEntry).where(WeatherCacheEntry.city == city)
            )
            removed = result.rowcount or 0
            await db.commit()
        return removed

    @staticmethod
    def _insert_for(db: AsyncSession):
        """Dialect specific insert construct that supports ON CONFLICT"""
        if db.get_bind().dialect.name == "postgresql":
            return postgresql.insert
        return sqlite.insert

    @staticmethod
    def _to_cached(entry: Optional[WeatherCacheEntry]) -> Optional[CachedWeather]:
        if entry is None:
            return None
        return CachedWeather(
            payload=entry.weather_data,
            cached_at=entry.cached_at,
            expires_at=entry.expires_at,
        )
