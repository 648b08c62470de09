"""Tests for the weather client using httpx.MockTransport."""
import httpx
import pytest

from weather_service.client import (
    DEFAULT_LOCATION,
    Location,
    WeatherClient,
    resolve_location,
)

CURRENT = {
    "temperature_2m": 18.4,
    "relative_humidity_2m": 72,
    "apparent_temperature": 17.9,
    "weather_code": 2,
    "wind_speed_10m": 11.2,
}


def _client(handler) -> WeatherClient:
    return WeatherClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_fetch_weather_reads_current_conditions() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "nominatim" in request.url.host:
            return httpx.Response(200, json={"address": {"city": "San Francisco"}})
        return httpx.Response(200, json={"current": CURRENT})

    with _client(handler) as client:
        report = client.fetch_weather(DEFAULT_LOCATION)

    assert report.place == "San Francisco"
    assert report.temperature == 18.4
    assert report.humidity == 72
    assert report.condition == "Partly cloudy"
    assert seen[0].url.params["latitude"] == "37.7749"
    assert seen[0].url.params["longitude"] == "-122.4194"


def test_fetch_weather_http_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with _client(handler) as client, pytest.raises(RuntimeError, match="503"):
        client.fetch_weather(DEFAULT_LOCATION)


def test_fetch_weather_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("slow", request=request)

    with _client(handler) as client, pytest.raises(RuntimeError, match="timed out"):
        client.fetch_weather(DEFAULT_LOCATION)


def test_reverse_geocode_failure_is_not_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "nominatim" in request.url.host:
            return httpx.Response(500)
        return httpx.Response(200, json={"current": CURRENT})

    with _client(handler) as client:
        report = client.fetch_weather(Location(51.5, -0.12))
    assert report.place == "Unknown location"


def test_unknown_weather_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "nominatim" in request.url.host:
            return httpx.Response(200, json={"address": {"town": "Sausalito"}})
        return httpx.Response(200, json={"current": {**CURRENT, "weather_code": 99}})

    with _client(handler) as client:
        report = client.fetch_weather(DEFAULT_LOCATION)
    assert report.place == "Sausalito"
    assert report.condition == "Unknown"


def test_resolve_location_falls_back_to_default() -> None:
    def denied() -> Location:
        raise PermissionError("location permission denied")

    assert resolve_location() == DEFAULT_LOCATION
    assert resolve_location(denied) == DEFAULT_LOCATION
    assert resolve_location(lambda: Location(1.0, 2.0)) == Location(1.0, 2.0)


@pytest.mark.parametrize(
    "current",
    [
        {key: value for key, value in CURRENT.items() if key != "apparent_temperature"},
        {**CURRENT, "weather_code": None},
        {**CURRENT, "temperature_2m": "warm"},
    ],
)
def test_fetch_weather_incomplete_payload_raises(current: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"current": current})

    with _client(handler) as client, pytest.raises(RuntimeError, match="Unexpected response"):
        client.fetch_weather(DEFAULT_LOCATION)


def test_fetch_weather_without_current_block_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": False})

    with _client(handler) as client, pytest.raises(RuntimeError, match="Unexpected response"):
        client.fetch_weather(DEFAULT_LOCATION)
