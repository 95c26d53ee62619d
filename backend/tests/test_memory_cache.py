"""
Tests for the in-memory expiring cache
"""

import pytest

from app.services.memory_cache_service import MemoryCache, weather_key


class TestMemoryCacheBasics:

    def test_set_then_get_returns_value(self, memory_cache):
        memory_cache.set("weather:paris", {"temp": 18}, 60)
        assert memory_cache.get("weather:paris") == {"temp": 18}

    def test_get_missing_key_returns_none(self, memory_cache):
        assert memory_cache.get("weather:nowhere") is None

    def test_entry_absent_after_ttl(self, memory_cache, clock):
        """A 1 second entry is gone once 2 seconds have passed"""
        memory_cache.set("weather:paris", {"temp": 18}, 1)
        clock.advance(2)

        assert memory_cache.get("weather:paris") is None
        assert memory_cache.keys_matching("paris") == set()

    def test_entries_expire_independently(self, memory_cache, clock):
        memory_cache.set("short", "a", 10)
        memory_cache.set("long", "b", 100)
        clock.advance(50)

        assert memory_cache.get("short") is None
        assert memory_cache.get("long") == "b"

    def test_default_ttl_used_when_not_given(self, memory_cache, clock):
        memory_cache.set("key", "value")
        clock.advance(1799)
        assert memory_cache.get("key") == "value"
        clock.advance(2)
        assert memory_cache.get("key") is None

    def test_set_overwrites_existing_entry(self, memory_cache):
        memory_cache.set("key", "old", 60)
        memory_cache.set("key", "new", 60)
        assert memory_cache.get("key") == "new"

    def test_delete(self, memory_cache):
        memory_cache.set("key", "value", 60)

        assert memory_cache.delete("key") is True
        assert memory_cache.delete("key") is False
        assert memory_cache.get("key") is None

    def test_clear_drops_entries_and_resets_stats(self, memory_cache):
        memory_cache.set("a", 1, 60)
        memory_cache.get("a")
        memory_cache.clear()

        assert memory_cache.get_stats()["keys"] == 0
        assert memory_cache.stats == {"hits": 0, "misses": 0, "sets": 0}

    def test_lru_eviction_when_full(self, clock):
        cache = MemoryCache(max_entries=2, timer=clock)
        cache.set("a", 1, 60)
        cache.set("b", 2, 60)
        cache.get("a")
        cache.set("c", 3, 60)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_never_expires(self, memory_cache, clock, ttl):
        assert memory_cache.set("pinned", "v", ttl) is True
        clock.advance(10 ** 6)

        assert memory_cache.get("pinned") == "v"
        assert memory_cache.cleanup() == 0


class TestMemoryCachePatterns:

    def test_keys_matching_substring(self, memory_cache):
        memory_cache.set("weather:paris", 1, 60)
        memory_cache.set("current_weather:paris", 2, 60)
        memory_cache.set("search:par", 3, 60)

        assert memory_cache.keys_matching("weather:") == {"weather:paris", "current_weather:paris"}
        assert memory_cache.keys_matching("par") == {"weather:paris", "current_weather:paris", "search:par"}

    def test_clear_pattern_returns_count(self, memory_cache):
        memory_cache.set("weather:paris", 1, 60)
        memory_cache.set("weather:oslo", 2, 60)
        memory_cache.set("search:osl", 3, 60)

        assert memory_cache.clear_pattern("weather:") == 2
        assert memory_cache.get("search:osl") == 3

    def test_weather_shortcuts_lowercase_city(self, memory_cache):
        memory_cache.set_weather_data("Paris", {"temp": 18})

        assert weather_key("Paris") == "weather:paris"
        assert memory_cache.get("weather:paris") == {"temp": 18}
        assert memory_cache.get_weather_data("PARIS") == {"temp": 18}


class TestMemoryCacheMaintenance:

    def test_cleanup_evicts_expired_entries(self, memory_cache, clock):
        memory_cache.set("a", 1, 10)
        memory_cache.set("b", 2, 10)
        memory_cache.set("c", 3, 100)
        clock.advance(20)

        assert memory_cache.cleanup() == 2
        assert memory_cache.cleanup() == 0
        assert memory_cache.keys_matching("") == {"c"}

    def test_stats_count_hits_misses_sets(self, memory_cache):
        memory_cache.set("a", 1, 60)
        memory_cache.get("a")
        memory_cache.get("a")
        memory_cache.get("b")

        stats = memory_cache.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["keys"] == 1
        assert stats["hits_ratio"] == pytest.approx(2 / 3)

    def test_hits_ratio_zero_without_lookups(self, memory_cache):
        assert memory_cache.get_stats()["hits_ratio"] == 0

    def test_health_check_does_not_touch_stats(self, memory_cache):
        assert memory_cache.is_healthy() is True
        assert memory_cache.stats == {"hits": 0, "misses": 0, "sets": 0}
        assert memory_cache.get_stats()["keys"] == 0

    def test_health_check_keeps_full_cache_intact(self, clock):
        cache = MemoryCache(max_entries=2, timer=clock)
        cache.set("weather:paris", {"temp": 18}, 60)
        cache.set("weather:oslo", {"temp": 5}, 60)

        assert cache.is_healthy() is True
        assert cache.get("weather:paris") == {"temp": 18}
        assert cache.get("weather:oslo") == {"temp": 5}

    def test_health_check_leaves_same_named_key_alone(self, memory_cache):
        memory_cache.set("health_check", "user value", 60)

        assert memory_cache.is_healthy() is True
        assert memory_cache.get("health_check") == "user value"
