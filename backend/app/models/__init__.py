# Database models

from .weather_cache import WeatherCacheEntry
from .api_usage import ApiUsage

__all__ = [
    "WeatherCacheEntry",
    "ApiUsage",
]
