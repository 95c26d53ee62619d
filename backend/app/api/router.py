"""
Main API router that includes all endpoint routers
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api import weather
from app.api.weather import get_weather_service
from app.core.config import settings
from app.core.exceptions import WeatherAPIError
from app.schemas.common import HealthResponse, UpstreamHealthResponse
from app.services.weather_service import WeatherService

# Create main API router
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(weather.router)


@api_router.get("/health", response_model=HealthResponse)
async def api_health(weather_service: WeatherService = Depends(get_weather_service)):
    """API health check endpoint"""
    cache_healthy = weather_service.memory_cache.is_healthy()
    database_healthy = await weather_service.get_api_stats(1) is not None
    healthy = cache_healthy and database_healthy

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=time.time(),
        version=settings.VERSION,
        database=database_healthy,
        cache=cache_healthy,
        weather_api_configured=weather_service.client.is_configured,
    )


@api_router.get("/health/weather", response_model=UpstreamHealthResponse, responses={503: {"model": UpstreamHealthResponse}})
async def weather_api_health(weather_service: WeatherService = Depends(get_weather_service)):
    """Probe the weather provider with a live current-conditions lookup"""
    test_city = "London"
    start_time = time.perf_counter()
    try:
        await weather_service.get_current_weather(test_city, use_cache=False)
    except WeatherAPIError as e:
        body = UpstreamHealthResponse(status="unhealthy", test_city=test_city, error=e.message)
        return JSONResponse(body.model_dump(mode="json"), status_code=503)

    return UpstreamHealthResponse(
        status="healthy",
        test_city=test_city,
        response_time_ms=int((time.perf_counter() - start_time) * 1000),
    )
