"""
Weather API endpoints

Provider failures propagate as WeatherAPIError and are rendered by the
handler registered in app.core.exceptions.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import Optional
import logging
import time

from app.core.scheduler import CacheMaintenanceScheduler
from app.schemas.common import DataResponse, ErrorResponse, ListResponse
from app.schemas.weather import CacheClearResult, CityMatch, StatsData
from app.services.memory_cache_service import weather_key
from app.services.weather_service import WeatherService, current_weather_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["weather"])

WEATHER_ERROR_RESPONSES = {
    404: {"description": "City not found", "model": ErrorResponse},
    502: {"description": "Weather provider error", "model": ErrorResponse},
    503: {"description": "Weather provider unavailable", "model": ErrorResponse},
    504: {"description": "Weather provider timeout", "model": ErrorResponse},
}


def get_weather_service(request: Request) -> WeatherService:
    """Dependency to get the application's weather service"""
    return request.app.state.weather_service


def get_scheduler(request: Request) -> Optional[CacheMaintenanceScheduler]:
    return getattr(request.app.state, "scheduler", None)


def _require_city(city: str) -> str:
    city = city.strip()
    if not city:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="City name is required")
    return city


@router.get("/weather/{city}", response_model=DataResponse, responses=WEATHER_ERROR_RESPONSES)
async def get_weather_by_city(
    city: str,
    fresh: bool = Query(False, description="Bypass both cache tiers"),
    weather_service: WeatherService = Depends(get_weather_service)
):
    """Forecast for a city, served from cache when possible"""
    start_time = time.perf_counter()
    city = _require_city(city)
    cached = not fresh and weather_service.memory_cache.contains(weather_key(city))

    weather_data = await weather_service.get_weather_data(city, use_cache=not fresh)

    location = weather_data.get("location") or {}
    return DataResponse(
        data=weather_data,
        meta={
            "city": location.get("name", city),
            "country": location.get("country"),
            "cached": cached,
            "response_time_ms": int((time.perf_counter() - start_time) * 1000),
        }
    )


@router.get("/weather/{city}/current", response_model=DataResponse, responses=WEATHER_ERROR_RESPONSES)
async def get_current_weather_by_city(
    city: str,
    fresh: bool = Query(False, description="Bypass the memory cache"),
    weather_service: WeatherService = Depends(get_weather_service)
):
    """Current conditions for a city"""
    start_time = time.perf_counter()
    city = _require_city(city)
    cached = not fresh and weather_service.memory_cache.contains(current_weather_key(city))

    current_data = await weather_service.get_current_weather(city, use_cache=not fresh)

    location = current_data.get("location") or {}
    return DataResponse(
        data=current_data,
        meta={
            "city": location.get("name", city),
            "country": location.get("country"),
            "cached": cached,
            "response_time_ms": int((time.perf_counter() - start_time) * 1000),
        }
    )


@router.get("/cities/search", response_model=ListResponse, responses=WEATHER_ERROR_RESPONSES)
async def search_cities(
    q: str = Query(..., min_length=1, max_length=100, description="City name fragment"),
    weather_service: WeatherService = Depends(get_weather_service)
):
    """Search the provider's location index"""
    query = q.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required")

    results = await weather_service.search_cities(query)

    matches = [CityMatch.model_validate(result) for result in results]
    return ListResponse(data=matches, count=len(matches), meta={"query": query})


@router.get("/stats", response_model=DataResponse)
async def get_stats(
    hours: Optional[int] = Query(None, ge=1, le=24 * 30, description="Statistics window in hours"),
    weather_service: WeatherService = Depends(get_weather_service),
    scheduler: Optional[CacheMaintenanceScheduler] = Depends(get_scheduler)
):
    """API usage and cache statistics"""
    api_stats = await weather_service.get_api_stats(hours)
    stats = StatsData(
        api=api_stats,
        cache=weather_service.get_cache_stats(),
        scheduler=scheduler.get_job_status() if scheduler else None,
    )
    return DataResponse(data=stats)


@router.delete("/cache", response_model=DataResponse)
async def clear_cache(
    city: Optional[str] = Query(None, description="Only clear this city"),
    type: Optional[str] = Query(None, pattern="^(memory|all)$", description="'memory' to keep the database cache"),
    weather_service: WeatherService = Depends(get_weather_service)
):
    """Clear cached weather data"""
    if city:
        memory_cleared = weather_service.clear_weather_cache(city)
        db_cleared = await weather_service.clear_database_cache(city)
        result = CacheClearResult(
            message=f"Cache cleared for {city}",
            memory_entries_cleared=memory_cleared,
            database_entries_cleared=db_cleared,
        )
    elif type == "memory":
        memory_cleared = weather_service.get_cache_stats()["keys"]
        weather_service.memory_cache.clear()
        result = CacheClearResult(message="Memory cache cleared", memory_entries_cleared=memory_cleared)
    else:
        memory_cleared = weather_service.get_cache_stats()["keys"]
        weather_service.memory_cache.clear()
        db_cleared = await weather_service.clear_database_cache()
        result = CacheClearResult(
            message="All cache cleared",
            memory_entries_cleared=memory_cleared,
            database_entries_cleared=db_cleared,
        )

    logger.info(result.message)
    return DataResponse(data=result)
