"""
Pytest configuration and fixtures for the weather cache tests

Provides controllable clocks, a temporary SQLite database and a fully wired
WeatherService whose upstream client is an AsyncMock.
"""

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock
import sys

# Add the app directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import create_engine, create_session_factory, init_db
from app.services.api_usage_service import ApiUsageService
from app.services.memory_cache_service import MemoryCache
from app.services.weather_api_client import WeatherAPIClient
from app.services.weather_cache_service import WeatherCacheRepository
from app.services.weather_service import WeatherService


class FakeClock:
    """Monotonic seconds clock that only moves when told to"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUtcClock:
    """Naive UTC datetime clock that only moves when told to"""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_clock():
    return FakeUtcClock()


@pytest.fixture
def memory_cache(clock):
    """Fresh in-memory cache driven by the fake clock"""
    return MemoryCache(max_entries=100, default_ttl=1800, timer=clock)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'weather.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    db_engine = create_engine(database_url)
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def weather_cache(session_factory, db_clock):
    return WeatherCacheRepository(session_factory, clock=db_clock)


@pytest.fixture
def usage_service(session_factory, db_clock):
    return ApiUsageService(session_factory, clock=db_clock)


@pytest.fixture
def mock_client():
    """Upstream client double: configured, every fetch is an AsyncMock"""
    client = MagicMock(spec=WeatherAPIClient)
    client.is_configured = True
    client.ensure_configured = MagicMock(return_value=None)
    client.fetch_forecast = AsyncMock()
    client.fetch_current = AsyncMock()
    client.search_cities = AsyncMock()
    return client


@pytest.fixture
def weather_service(memory_cache, weather_cache, mock_client, usage_service):
    return WeatherService(
        memory_cache=memory_cache,
        weather_cache=weather_cache,
        client=mock_client,
        usage=usage_service,
    )


@pytest.fixture
def sample_forecast():
    """Trimmed weatherapi.com forecast document"""
    return {
        "location": {"name": "Paris", "region": "Ile-de-France", "country": "France"},
        "current": {"temp_c": 18.0, "condition": {"text": "Partly cloudy"}},
        "forecast": {"forecastday": [{"date": "2024-06-01", "day": {"maxtemp_c": 21.0}}]},
    }
