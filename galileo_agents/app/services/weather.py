"""Open-Meteo weather client: city geocoding and current conditions."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.exceptions import LocationNotFoundError, WeatherServiceError
from galileo_agents.app.models.domain import Forecast


logger = logging.getLogger(__name__)

CURRENT_FIELDS = (
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "wind_speed_10m",
    "wind_gusts_10m",
    "weather_code",
)

# WMO weather interpretation codes
WEATHER_CONDITIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def get_weather_condition(code: Optional[int]) -> str:
    """Human-readable description of a WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_CONDITIONS.get(int(code), "Unknown")


class GeocodedLocation(BaseModel):
    name: str
    latitude: float
    longitude: float


class OpenMeteoClient:
    """
    Client for the Open-Meteo geocoding and forecast APIs.

    Args:
        http_client: Shared AsyncClient; a client is created per call when omitted
        geocoding_url: Geocoding search endpoint
        forecast_url: Forecast endpoint
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        geocoding_url: Optional[str] = None,
        forecast_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self._http_client = http_client
        self.geocoding_url = geocoding_url or settings.geocoding_url
        self.forecast_url = forecast_url or settings.forecast_url
        self.timeout = timeout if timeout is not None else settings.weather_request_timeout

    async def _get(self, url: str, params: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url, params=params, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params)

    async def geocode(self, city: str) -> GeocodedLocation:
        """
        Resolve a city name to coordinates (first match only).

        Raises:
            WeatherServiceError: Request failed or returned a non-2xx status
            LocationNotFoundError: No match for the city
        """
        try:
            response = await self._get(self.geocoding_url, {"name": city, "count": 1})
        except httpx.HTTPError as exc:
            raise WeatherServiceError(f"Failed to geocode city '{city}': {exc}") from exc

        if not response.is_success:
            raise WeatherServiceError(
                f"Failed to geocode city '{city}': {response.reason_phrase}"
            )

        try:
            results = response.json().get("results") or []
        except (ValueError, AttributeError) as exc:
            raise WeatherServiceError(f"Failed to geocode city '{city}': invalid response") from exc
        if not results:
            raise LocationNotFoundError(f"Location '{city}' not found")

        try:
            first = results[0]
            return GeocodedLocation(
                name=first["name"],
                latitude=first["latitude"],
                longitude=first["longitude"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise WeatherServiceError(f"Failed to geocode city '{city}': invalid response") from exc

    async def get_forecast(self, city: str) -> Forecast:
        """Geocode ``city`` and fetch its current conditions."""
        location = await self.geocode(city)
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": ",".join(CURRENT_FIELDS),
        }

        try:
            response = await self._get(self.forecast_url, params)
        except httpx.HTTPError as exc:
            raise WeatherServiceError(
                f"Failed to fetch weather data for '{location.name}': {exc}"
            ) from exc

        if not response.is_success:
            raise WeatherServiceError(
                f"Failed to fetch weather data for '{location.name}': {response.reason_phrase}"
            )

        try:
            current = response.json()["current"]
            forecast = Forecast(
                location=location.name,
                temperature=current["temperature_2m"],
                feels_like=current["apparent_temperature"],
                humidity=current["relative_humidity_2m"],
                wind_speed=current["wind_speed_10m"],
                wind_gust=current["wind_gusts_10m"],
                conditions=get_weather_condition(current.get("weather_code")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise WeatherServiceError(
                f"Failed to fetch weather data for '{location.name}': invalid response"
            ) from exc
        logger.debug("Fetched forecast for %s: %s", location.name, forecast.conditions)
        return forecast


__all__ = [
    "Forecast",
    "GeocodedLocation",
    "OpenMeteoClient",
    "WEATHER_CONDITIONS",
    "get_weather_condition",
]
