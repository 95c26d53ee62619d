"""
weatherapi.com client

Async wrapper around the forecast, current and search endpoints. Provider
error payloads are translated into the WeatherAPIError taxonomy; callers
never see raw httpx exceptions.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import PLACEHOLDER_API_KEY
from app.core.exceptions import (
    PROVIDER_ERROR_CODES,
    CityNotFoundError,
    TransportError,
    TransportTimeoutError,
    UnknownWeatherAPIError,
    WeatherAPIError,
    WeatherAPIUnconfiguredError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.weatherapi.com/v1"


class WeatherAPIClient:
    """Client for the upstream weather provider"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        forecast_timeout: float = 10.0,
        current_timeout: float = 8.0,
        search_timeout: float = 5.0,
        forecast_days: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.forecast_timeout = forecast_timeout
        self.current_timeout = current_timeout
        self.search_timeout = search_timeout
        self.forecast_days = forecast_days
        self._transport = transport

        if not self.is_configured:
            state = "a placeholder" if api_key else "missing"
            logger.warning(f"Weather API key is {state}; upstream requests will be refused")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise WeatherAPIUnconfiguredError()

    async def fetch_forecast(self, city: str) -> Dict[str, Any]:
        """Multi-day forecast (includes current conditions and location)"""
        return await self._get(
            "forecast.json",
            {"q": city, "days": self.forecast_days, "aqi": "no", "alerts": "no"},
            timeout=self.forecast_timeout,
            not_found_message=f'City "{city}" not found. Please check the spelling and try again.',
            fallback_message="Failed to fetch weather data",
        )

    async def fetch_current(self, city: str) -> Dict[str, Any]:
        return await self._get(
            "current.json",
            {"q": city, "aqi": "no"},
            timeout=self.current_timeout,
            not_found_message=f'City "{city}" not found. Please check the spelling and try again.',
            fallback_message="Failed to fetch current weather data",
        )

    async def search_cities(self, query: str) -> List[Dict[str, Any]]:
        """Locations matching ``query``, in provider order"""
        return await self._get(
            "search.json",
            {"q": query},
            timeout=self.search_timeout,
            not_found_message=f'No cities found matching "{query}". Please try a different search term.',
            fallback_message="Failed to search cities",
        )

    async def _get(
        self,
        path: str,
        params: Dict[str, Any],
        timeout: float,
        not_found_message: str,
        fallback_message: str,
    ) -> Any:
        self.ensure_configured()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/{path}",
                    params={"key": self.api_key, **params},
                )
        except httpx.TimeoutException as e:
            logger.error(f"Weather API timeout on {path} after {timeout}s: {e}")
            raise TransportTimeoutError() from e
        except httpx.HTTPError as e:
            logger.error(f"Weather API request to {path} failed: {e}")
            raise TransportError() from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Weather API returned invalid JSON on {path}: {e}")
                raise TransportError(upstream_status=response.status_code) from e

        raise self._classify_error(response, not_found_message, fallback_message)

    @staticmethod
    def _classify_error(
        response: httpx.Response,
        not_found_message: str,
        fallback_message: str,
    ) -> WeatherAPIError:
        """Map a provider error body onto the exception taxonomy"""
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None

        api_error = body.get("error") if isinstance(body, dict) else None
        if api_error and not isinstance(api_error, dict):
            # Bare string or list instead of {"code", "message"}
            api_error = {"message": str(api_error)}
        api_error = api_error or {}

        logger.error(f"Weather API Error ({status}): {api_error or response.text}")

        if not api_error:
            return TransportError(f"{fallback_message}. Please try again later.", upstream_status=status)

        error_code = api_error.get("code")
        error_class = PROVIDER_ERROR_CODES.get(error_code)

        if error_class is CityNotFoundError:
            return CityNotFoundError(not_found_message, upstream_status=status)
        if error_class is not None:
            return error_class(upstream_status=status)
        return UnknownWeatherAPIError(api_error.get("message") or fallback_message, upstream_status=status)
