"""
Weather provider error taxonomy

Every failure of the upstream client is raised as a subclass of
WeatherAPIError. ``status_code`` is what the API layer answers with,
``upstream_status`` is the provider's HTTP status (None when no response
was received) and ``code`` is a stable machine-readable identifier.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class WeatherAPIError(Exception):
    """Base weather provider error"""

    code = "WEATHER_API_ERROR"
    default_message = "Failed to fetch weather data. Please try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: int = 502,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.status_code = status_code
        self.upstream_status = upstream_status

    @property
    def usage_status(self) -> int:
        """Status code recorded in the usage log"""
        return self.upstream_status or 500


class WeatherAPIUnconfiguredError(WeatherAPIError):
    code = "WEATHER_API_UNCONFIGURED"
    default_message = "Weather API key is not configured. Please check environment variables."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=500)


class CityNotFoundError(WeatherAPIError):
    code = "CITY_NOT_FOUND"
    default_message = "City not found. Please check the spelling and try again."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=404, upstream_status=upstream_status)


class InvalidCredentialsError(WeatherAPIError):
    code = "INVALID_API_KEY"
    default_message = "Invalid API key. Please check your Weather API configuration."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=502, upstream_status=upstream_status)


class QuotaExceededError(WeatherAPIError):
    code = "QUOTA_EXCEEDED"
    default_message = "API key has exceeded calls per month quota."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=503, upstream_status=upstream_status)


class CredentialsDisabledError(WeatherAPIError):
    code = "API_KEY_DISABLED"
    default_message = "API key has been disabled."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=502, upstream_status=upstream_status)


class ServiceUnavailableError(WeatherAPIError):
    code = "SERVICE_UNAVAILABLE"
    default_message = "Weather service is temporarily unavailable. Please try again later."

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=503, upstream_status=upstream_status)


class UnknownWeatherAPIError(WeatherAPIError):
    code = "WEATHER_API_ERROR"


class TransportTimeoutError(WeatherAPIError):
    code = "UPSTREAM_TIMEOUT"
    default_message = "Weather service did not respond in time. Please try again later."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=504)


class TransportError(WeatherAPIError):
    code = "UPSTREAM_UNREACHABLE"


# Provider error code -> exception class
PROVIDER_ERROR_CODES = {
    1006: CityNotFoundError,
    2006: InvalidCredentialsError,
    2007: QuotaExceededError,
    2008: CredentialsDisabledError,
    9999: ServiceUnavailableError,
}


def register_error_handlers(app: FastAPI) -> None:
    """Answer every WeatherAPIError with an ErrorResponse body"""
    @app.exception_handler(WeatherAPIError)
    async def handle_weather_api_error(request: Request, exc: WeatherAPIError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
        body = ErrorResponse(
            message=exc.message,
            error_code=exc.code,
            details={"upstream_status": exc.upstream_status},
        )
        return JSONResponse(body.model_dump(mode="json"), status_code=exc.status_code)
