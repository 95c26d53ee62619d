"""
Weather Service

Tiered lookup in front of the weather provider:

    memory cache -> database cache -> provider -> stale database row

Forecasts use both tiers and fall back to the last stored row when the
provider fails. Current conditions and city search are cheaper and only use
the memory tier. Every lookup is recorded through ApiUsageService.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from app.core.exceptions import WeatherAPIError
from app.services.api_usage_service import ApiUsageService
from app.services.memory_cache_service import MemoryCache, weather_key
from app.services.weather_api_client import WeatherAPIClient
from app.services.weather_cache_service import WeatherCacheRepository

logger = logging.getLogger(__name__)


def current_weather_key(city: str) -> str:
    return f"current_weather:{city.lower()}"


def search_key(query: str) -> str:
    return f"search:{query.lower()}"


class WeatherService:
    """Cache orchestration for forecasts, current conditions and city search"""

    def __init__(
        self,
        memory_cache: MemoryCache,
        weather_cache: WeatherCacheRepository,
        client: WeatherAPIClient,
        usage: ApiUsageService,
        memory_ttl: int = 1800,
        db_ttl_minutes: int = 60,
        current_ttl: int = 900,
        search_ttl: int = 3600,
        stats_window_hours: int = 24,
    ):
        self.memory_cache = memory_cache
        self.weather_cache = weather_cache
        self.client = client
        self.usage = usage
        self.memory_ttl = memory_ttl
        self.db_ttl_minutes = db_ttl_minutes
        self.current_ttl = current_ttl
        self.search_ttl = search_ttl
        self.stats_window_hours = stats_window_hours

    async def get_weather_data(self, city: str, use_cache: bool = True) -> Dict[str, Any]:
        """
        Forecast for ``city``

        With ``use_cache`` the memory tier and then the database tier are
        consulted first; a database hit is promoted into memory. Fresh
        provider data is written to both tiers. When the provider fails the
        last stored row (expired or not) is returned instead of raising.
        """
        self.client.ensure_configured()
        start_time = time.perf_counter()

        if use_cache:
            cached = self.memory_cache.get_weather_data(city)
            if cached is not None:
                logger.info(f"Weather data served from memory cache for {city}")
                await self._log_usage("weather_cache_hit", city, start_time, 200)
                return cached

            db_cached = await self._get_fresh_from_db(city)
            if db_cached is not None:
                logger.info(f"Weather data served from database cache for {city}")
                self.memory_cache.set_weather_data(city, db_cached.payload, self.memory_ttl)
                await self._log_usage("weather_db_cache_hit", city, start_time, 200)
                return db_cached.payload

        logger.info(f"Fetching fresh weather data for {city}")
        try:
            weather_data = await self.client.fetch_forecast(city)
        except WeatherAPIError as e:
            stale = await self._get_stale_from_db(city)
            if stale is not None:
                logger.warning(f"Serving stale weather data for {city} due to API error: {e.message}")
                await self._log_usage("weather_stale_fallback", city, start_time, e.usage_status)
                return stale.payload

            await self._log_usage("weather_api_error", city, start_time, e.usage_status)
            raise

        self.memory_cache.set_weather_data(city, weather_data, self.memory_ttl)
        await self._store_in_db(city, weather_data)
        await self._log_usage("weather_api_call", city, start_time, 200)
        return weather_data

    async def get_current_weather(self, city: str, use_cache: bool = True) -> Dict[str, Any]:
        """Current conditions, memory tier only"""
        start_time = time.perf_counter()
        key = current_weather_key(city)

        if use_cache:
            cached = self.memory_cache.get(key)
            if cached is not None:
                await self._log_usage("current_weather_cache_hit", city, start_time, 200)
                return cached

        try:
            current_data = await self.client.fetch_current(city)
        except WeatherAPIError as e:
            await self._log_usage("current_weather_api_error", city, start_time, e.usage_status)
            raise

        self.memory_cache.set(key, current_data, self.current_ttl)
        await self._log_usage("current_weather_api_call", city, start_time, 200)
        return current_data

    async def search_cities(self, query: str) -> List[Dict[str, Any]]:
        """City search, memory tier only"""
        start_time = time.perf_counter()
        key = search_key(query)

        cached = self.memory_cache.get(key)
        if cached is not None:
            await self._log_usage("city_search_cache_hit", query, start_time, 200)
            return cached

        try:
            results = await self.client.search_cities(query)
        except WeatherAPIError as e:
            await self._log_usage("city_search_api_error", query, start_time, e.usage_status)
            raise

        self.memory_cache.set(key, results, self.search_ttl)
        await self._log_usage("city_search_api_call", query, start_time, 200)
        return results

    # Cache management ---------------------------------------------------

    def clear_weather_cache(self, city: Optional[str] = None) -> int:
        """Drop forecast and current-conditions entries from the memory tier"""
        if city:
            removed = self.memory_cache.delete(weather_key(city))
            removed += self.memory_cache.delete(current_weather_key(city))
            return int(removed)

        # "weather:" also matches every "current_weather:" key
        return self.memory_cache.clear_pattern("weather:")

    async def clear_database_cache(self, city: Optional[str] = None) -> int:
        """Delete one city's row, or purge all expired rows when no city is given"""
        try:
            if city:
                return await self.weather_cache.delete(city)
            return await self.weather_cache.purge_expired()
        except Exception as e:
            logger.error(f"Failed to clear database cache: {str(e)}")
            return 0

    async def get_api_stats(self, window_hours: Optional[int] = None) -> Optional[Dict[str, Any]]:
        if window_hours is None:
            window_hours = self.stats_window_hours
        try:
            return await self.usage.summarize(window_hours)
        except Exception as e:
            logger.error(f"Failed to get API stats: {str(e)}")
            return None

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.memory_cache.get_stats()

    # Helpers ------------------------------------------------------------

    async def _get_fresh_from_db(self, city: str):
        try:
            return await self.weather_cache.get_fresh(city)
        except Exception as e:
            logger.warning(f"Database cache read failed for {city}, treating as miss: {str(e)}")
            return None

    async def _get_stale_from_db(self, city: str):
        try:
            return await self.weather_cache.get_stale(city)
        except Exception as e:
            logger.error(f"Error fetching stale weather data for {city}: {str(e)}")
            return None

    async def _store_in_db(self, city: str, weather_data: Dict[str, Any]) -> None:
        try:
            await self.weather_cache.put(city, weather_data, self.db_ttl_minutes)
        except Exception as e:
            logger.warning(f"Database cache write failed for {city}: {str(e)}")

    async def _log_usage(self, endpoint: str, city: Optional[str], start_time: float, status_code: int) -> None:
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        await self.usage.record(endpoint, city, elapsed_ms, status_code)
