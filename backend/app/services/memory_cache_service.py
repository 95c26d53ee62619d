"""
In-process expiring cache

Each entry carries its own deadline. Expired entries are evicted lazily on
reads and actively by the periodic cleanup job.
"""

import logging
import math
import time
from typing import Any, Callable, Dict, NamedTuple, Optional, Set

from cachetools import TLRUCache

logger = logging.getLogger(__name__)

DEFAULT_TTL = 1800  # 30 minutes


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    # A ttl of zero or less never expires
    if entry.ttl <= 0:
        return math.inf
    return now + entry.ttl


def weather_key(city: str) -> str:
    return f"weather:{city.lower()}"


class MemoryCache:
    """Expiring key-value store with hit/miss/set counters"""

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl: float = DEFAULT_TTL,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._timer = timer
        self._cache = TLRUCache(maxsize=max_entries, ttu=_time_to_use, timer=timer)
        self.stats = {"hits": 0, "misses": 0, "sets": 0}

    def get(self, key: str) -> Optional[Any]:
        self._evict_expired()
        entry = self._cache.get(key)

        if entry is not None:
            self.stats["hits"] += 1
            logger.debug(f"Cache HIT: {key}")
            return entry.value

        self.stats["misses"] += 1
        logger.debug(f"Cache MISS: {key}")
        return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        self._cache[key] = _Entry(value, self.default_ttl if ttl is None else ttl)
        self.stats["sets"] += 1
        logger.debug(f"Cache SET: {key}")
        return True

    def delete(self, key: str) -> bool:
        self._evict_expired()
        if self._cache.pop(key, None) is None:
            return False
        logger.debug(f"Cache DEL: {key}")
        return True

    def contains(self, key: str) -> bool:
        """Live entry present, without counting a lookup"""
        return key in self._cache

    def clear(self) -> None:
        self._cache.clear()
        self.reset_stats()
        logger.info("Cache cleared")

    def keys_matching(self, pattern: str) -> Set[str]:
        self._evict_expired()
        return {key for key in self._cache.keys() if pattern in key}

    def clear_pattern(self, pattern: str) -> int:
        matching = self.keys_matching(pattern)
        for key in matching:
            self._cache.pop(key, None)

        if matching:
            logger.info(f"Cleared {len(matching)} keys matching pattern: {pattern}")
        return len(matching)

    # Weather data shortcuts
    def get_weather_data(self, city: str) -> Optional[Any]:
        return self.get(weather_key(city))

    def set_weather_data(self, city: str, data: Any, ttl: Optional[float] = None) -> bool:
        return self.set(weather_key(city), data, ttl)

    # Maintenance
    def cleanup(self) -> int:
        """Evict every expired entry, returning how many were dropped"""
        cleaned = self._evict_expired()
        if cleaned:
            logger.info(f"Cleaned up {cleaned} expired cache entries")
        return cleaned

    def _evict_expired(self) -> int:
        expired = self._cache.expire()
        for key, _entry in expired:
            logger.debug(f"Cache EXPIRED: {key}")
        return len(expired)

    # Statistics and monitoring
    def get_stats(self) -> Dict[str, Any]:
        self._evict_expired()
        lookups = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "keys": len(self._cache),
            "max_keys": self._cache.maxsize,
            "hits_ratio": self.stats["hits"] / lookups if lookups else 0,
        }

    def reset_stats(self) -> None:
        self.stats = {"hits": 0, "misses": 0, "sets": 0}

    def is_healthy(self) -> bool:
        """Round-trip a probe entry through a scratch cache sharing this cache's timer

        The live cache is never written, so no entry is evicted or overwritten
        and the counters stay untouched.
        """
        try:
            scratch = TLRUCache(maxsize=1, ttu=_time_to_use, timer=self._timer)
            scratch["health_check"] = _Entry("ok", 1)
            entry = scratch.get("health_check")
            return entry is not None and entry.value == "ok" and len(self._cache) <= self._cache.maxsize
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return False
