"""
Application configuration settings
"""

from typing import List, Optional
from pydantic_settings import BaseSettings


PLACEHOLDER_API_KEY = "your_weatherapi_key_here"


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Weather Cache API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/weather.db"
    DATABASE_ECHO: bool = False

    # CORS (comma separated)
    CORS_ORIGINS: str = "*"

    # Weather provider
    WEATHER_API_KEY: Optional[str] = None
    WEATHER_API_URL: str = "https://api.weatherapi.com/v1"
    WEATHER_FORECAST_TIMEOUT: float = 10.0
    WEATHER_CURRENT_TIMEOUT: float = 8.0
    WEATHER_SEARCH_TIMEOUT: float = 5.0

    # Cache settings
    CACHE_TTL_WEATHER: int = 1800  # 30 minutes
    CACHE_TTL_CURRENT: int = 900   # 15 minutes
    CACHE_TTL_SEARCH: int = 3600   # 1 hour
    DB_CACHE_TTL_MINUTES: int = 60
    MEMORY_CACHE_MAX_ENTRIES: int = 1000
    MEMORY_CACHE_CHECK_PERIOD: int = 600  # seconds between memory sweeps
    DB_CACHE_PURGE_INTERVAL_MINUTES: int = 60

    # Usage statistics
    API_STATS_WINDOW_HOURS: int = 24

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def weather_api_configured(self) -> bool:
        return bool(self.WEATHER_API_KEY) and self.WEATHER_API_KEY != PLACEHOLDER_API_KEY

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Create settings instance
settings = Settings()
