"""
Weather lookup for the dashboard widget.

Fetches current conditions from the Open-Meteo forecast API and resolves a
place name through reverse geocoding. When the caller cannot supply a
position the default location (San Francisco) is used.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import typing as t

import httpx

logger = logging.getLogger(__name__)

# Service URLs - configurable via environment variables
WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.open-meteo.com/v1/forecast")
GEOCODE_API_URL = os.getenv("GEOCODE_API_URL", "https://nominatim.openstreetmap.org/reverse")

STANDARD_TIMEOUT = 10.0  # seconds

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,apparent_temperature,weather_code,wind_speed_10m"

WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Snow",
    75: "Heavy snow",
    80: "Rain showers",
    81: "Rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
}


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


DEFAULT_LOCATION = Location(latitude=37.7749, longitude=-122.4194)


@dataclass
class WeatherReport:
    """Current conditions at a location."""
    location: Location
    place: str
    temperature: float
    apparent_temperature: float
    humidity: float
    wind_speed: float
    weather_code: int

    @property
    def condition(self) -> str:
        return WEATHER_CODES.get(self.weather_code, "Unknown")


def resolve_location(locator: t.Optional[t.Callable[[], Location]] = None) -> Location:
    """Ask ``locator`` for the current position, falling back to the default.

    A missing locator or one that raises (permission denied, no fix, ...)
    yields DEFAULT_LOCATION.
    """
    if locator is None:
        return DEFAULT_LOCATION
    try:
        return locator()
    except Exception as e:
        logger.warning(f"Could not get location, using default location: {e}")
        return DEFAULT_LOCATION


class WeatherClient:
    """HTTP client for weather and reverse-geocoding lookups."""

    def __init__(self, http_client: t.Optional[httpx.Client] = None) -> None:
        self._http = http_client or httpx.Client(timeout=STANDARD_TIMEOUT)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> WeatherClient:
        return self

    def __exit__(self, *exc_info: t.Any) -> None:
        self.close()

    def fetch_weather(self, location: Location) -> WeatherReport:
        """Fetch current conditions for ``location``.

        Raises:
            RuntimeError: If the weather service times out, returns an error
                or answers without the expected readings.
        """
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": CURRENT_FIELDS,
            "timezone": "auto",
        }
        try:
            response = self._http.get(WEATHER_API_URL, params=params)
            response.raise_for_status()
            current = response.json()["current"]
            readings = {
                "temperature": float(current["temperature_2m"]),
                "apparent_temperature": float(current["apparent_temperature"]),
                "humidity": float(current["relative_humidity_2m"]),
                "wind_speed": float(current["wind_speed_10m"]),
                "weather_code": int(current["weather_code"]),
            }
        except httpx.TimeoutException:
            raise RuntimeError(f"Weather lookup timed out after {STANDARD_TIMEOUT} seconds")
        except httpx.HTTPStatusError as e:
            raise RuntimeError(f"HTTP error from weather service: {e.response.status_code} {e.response.text}")
        except httpx.HTTPError as e:
            raise RuntimeError(f"Error calling weather service: {str(e)}")
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Unexpected response from weather service: {e!r}")

        return WeatherReport(location=location, place=self.reverse_geocode(location), **readings)

    def reverse_geocode(self, location: Location) -> str:
        """Best-effort place name; "Unknown location" when the lookup fails."""
        params = {
            "format": "json",
            "lat": location.latitude,
            "lon": location.longitude,
            "zoom": 10,
        }
        try:
            response = self._http.get(GEOCODE_API_URL, params=params)
            response.raise_for_status()
            address = response.json().get("address", {})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocoding failed: {e}")
            return "Unknown location"
        return address.get("city") or address.get("town") or address.get("village") or "Unknown location"
