"""
Tests for the weatherapi.com client and its error classification
"""

import pytest
import httpx

from app.core.exceptions import (
    CityNotFoundError,
    CredentialsDisabledError,
    InvalidCredentialsError,
    QuotaExceededError,
    ServiceUnavailableError,
    TransportError,
    TransportTimeoutError,
    UnknownWeatherAPIError,
    WeatherAPIUnconfiguredError,
)
from app.services.weather_api_client import WeatherAPIClient

BASE_URL = "https://api.weatherapi.test/v1"


def _client(handler, api_key="test-key"):
    return WeatherAPIClient(api_key=api_key, base_url=BASE_URL, transport=httpx.MockTransport(handler))


def _error_handler(status_code, code, message="provider message"):
    def handler(request):
        return httpx.Response(status_code, json={"error": {"code": code, "message": message}})
    return handler


class TestSuccessfulRequests:

    @pytest.mark.asyncio
    async def test_fetch_forecast_sends_expected_params(self, sample_forecast):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=sample_forecast)

        result = await _client(handler).fetch_forecast("Paris")

        assert result == sample_forecast
        assert seen["path"] == "/v1/forecast.json"
        assert seen["params"] == {"key": "test-key", "q": "Paris", "days": "5", "aqi": "no", "alerts": "no"}

    @pytest.mark.asyncio
    async def test_fetch_current(self):
        def handler(request):
            assert request.url.path == "/v1/current.json"
            assert request.url.params["aqi"] == "no"
            return httpx.Response(200, json={"current": {"temp_c": 5}})

        assert await _client(handler).fetch_current("Oslo") == {"current": {"temp_c": 5}}

    @pytest.mark.asyncio
    async def test_search_cities_keeps_provider_order(self):
        matches = [{"id": 1, "name": "Paris"}, {"id": 2, "name": "Paris, Texas"}]

        def handler(request):
            assert request.url.path == "/v1/search.json"
            assert request.url.params["q"] == "par"
            return httpx.Response(200, json=matches)

        assert await _client(handler).search_cities("par") == matches


class TestErrorClassification:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code, error_class, status", [
        (1006, CityNotFoundError, 400),
        (2006, InvalidCredentialsError, 401),
        (2007, QuotaExceededError, 403),
        (2008, CredentialsDisabledError, 403),
        (9999, ServiceUnavailableError, 400),
    ])
    async def test_provider_codes_map_to_errors(self, code, error_class, status):
        client = _client(_error_handler(status, code))

        with pytest.raises(error_class) as exc_info:
            await client.fetch_forecast("Zzzzqx")

        assert exc_info.value.upstream_status == status
        assert exc_info.value.usage_status == status

    @pytest.mark.asyncio
    async def test_city_not_found_message_names_city(self):
        client = _client(_error_handler(400, 1006))

        with pytest.raises(CityNotFoundError) as exc_info:
            await client.fetch_forecast("Zzzzqx")

        assert 'City "Zzzzqx" not found' in exc_info.value.message
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_search_not_found_message(self):
        client = _client(_error_handler(400, 1006))

        with pytest.raises(CityNotFoundError) as exc_info:
            await client.search_cities("qqq")

        assert 'No cities found matching "qqq"' in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unknown_code_keeps_provider_message(self):
        client = _client(_error_handler(400, 1003, "Parameter q is missing."))

        with pytest.raises(UnknownWeatherAPIError) as exc_info:
            await client.fetch_current("Paris")

        assert exc_info.value.message == "Parameter q is missing."

    @pytest.mark.asyncio
    async def test_error_without_body_is_transport_error(self):
        client = _client(lambda request: httpx.Response(502, text="Bad gateway"))

        with pytest.raises(TransportError) as exc_info:
            await client.fetch_forecast("Paris")

        assert exc_info.value.upstream_status == 502

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_value, message", [
        ("upstream exploded", "upstream exploded"),
        (["first", "second"], "['first', 'second']"),
    ])
    async def test_non_object_error_value_is_classified(self, error_value, message):
        client = _client(lambda request: httpx.Response(500, json={"error": error_value}))

        with pytest.raises(UnknownWeatherAPIError) as exc_info:
            await client.fetch_forecast("Paris")

        assert exc_info.value.message == message
        assert exc_info.value.upstream_status == 500

    @pytest.mark.asyncio
    async def test_non_object_error_body_is_transport_error(self):
        client = _client(lambda request: httpx.Response(500, json=["unexpected"]))

        with pytest.raises(TransportError) as exc_info:
            await client.fetch_current("Paris")

        assert exc_info.value.upstream_status == 500

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportTimeoutError) as exc_info:
            await _client(handler).fetch_forecast("Paris")

        assert exc_info.value.upstream_status is None
        assert exc_info.value.usage_status == 500
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_connection_failure_is_classified(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await _client(handler).search_cities("Paris")


class TestConfiguration:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", [None, "", "your_weatherapi_key_here"])
    async def test_unconfigured_client_never_hits_network(self, api_key):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = _client(handler, api_key=api_key)

        assert client.is_configured is False
        with pytest.raises(WeatherAPIUnconfiguredError):
            await client.fetch_forecast("Paris")
        assert calls == []
