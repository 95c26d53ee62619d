"""
FastAPI application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import settings
from app.core.database import AsyncSessionLocal, close_db, init_db
from app.core.exceptions import register_error_handlers
from app.core.scheduler import CacheMaintenanceScheduler
from app.services.api_usage_service import ApiUsageService
from app.services.memory_cache_service import MemoryCache
from app.services.weather_api_client import WeatherAPIClient
from app.services.weather_cache_service import WeatherCacheRepository
from app.services.weather_service import WeatherService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def build_weather_service() -> WeatherService:
    """Wire the cache tiers, provider client and usage log together"""
    memory_cache = MemoryCache(
        max_entries=settings.MEMORY_CACHE_MAX_ENTRIES,
        default_ttl=settings.CACHE_TTL_WEATHER,
    )
    client = WeatherAPIClient(
        api_key=settings.WEATHER_API_KEY,
        base_url=settings.WEATHER_API_URL,
        forecast_timeout=settings.WEATHER_FORECAST_TIMEOUT,
        current_timeout=settings.WEATHER_CURRENT_TIMEOUT,
        search_timeout=settings.WEATHER_SEARCH_TIMEOUT,
    )
    return WeatherService(
        memory_cache=memory_cache,
        weather_cache=WeatherCacheRepository(AsyncSessionLocal),
        client=client,
        usage=ApiUsageService(AsyncSessionLocal),
        memory_ttl=settings.CACHE_TTL_WEATHER,
        db_ttl_minutes=settings.DB_CACHE_TTL_MINUTES,
        current_ttl=settings.CACHE_TTL_CURRENT,
        search_ttl=settings.CACHE_TTL_SEARCH,
        stats_window_hours=settings.API_STATS_WINDOW_HOURS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION} ({settings.ENVIRONMENT})")
    await init_db()
    if not settings.weather_api_configured:
        logger.warning("WEATHER_API_KEY is not set; weather requests will fail until it is configured")

    weather_service = build_weather_service()
    scheduler = CacheMaintenanceScheduler(
        memory_cache=weather_service.memory_cache,
        weather_cache=weather_service.weather_cache,
        sweep_interval_seconds=settings.MEMORY_CACHE_CHECK_PERIOD,
        purge_interval_minutes=settings.DB_CACHE_PURGE_INTERVAL_MINUTES,
    )
    app.state.weather_service = weather_service
    app.state.scheduler = scheduler
    await scheduler.start()

    yield

    await scheduler.stop()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(api_router)
