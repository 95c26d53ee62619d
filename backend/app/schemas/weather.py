"""
Weather related schemas
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class CityMatch(BaseModel):
    """Single city search result from the provider"""
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = Field(default=None)
    name: str = Field(...)
    region: Optional[str] = Field(default=None)
    country: Optional[str] = Field(default=None)
    lat: Optional[float] = Field(default=None)
    lon: Optional[float] = Field(default=None)
    url: Optional[str] = Field(default=None)


class ApiStats(BaseModel):
    """Usage summary over a trailing window"""
    total_requests: int = Field(default=0)
    avg_response_time_ms: float = Field(default=0.0)
    error_count: int = Field(default=0)
    window_hours: int = Field(default=24)


class CacheStats(BaseModel):
    """In-memory cache counters"""
    hits: int = Field(default=0)
    misses: int = Field(default=0)
    sets: int = Field(default=0)
    keys: int = Field(default=0)
    max_keys: int = Field(default=0)
    hits_ratio: float = Field(default=0.0)


class StatsData(BaseModel):
    api: Optional[ApiStats] = Field(default=None)
    cache: CacheStats = Field(...)
    scheduler: Optional[Dict[str, Any]] = Field(default=None)


class CacheClearResult(BaseModel):
    message: str = Field(...)
    memory_entries_cleared: Optional[int] = Field(default=None)
    database_entries_cleared: Optional[int] = Field(default=None)
