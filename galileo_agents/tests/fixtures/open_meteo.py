"""Mock Open-Meteo endpoints for httpx.MockTransport."""

import httpx

from galileo_agents.app.services.weather import OpenMeteoClient


GEOCODING_URL = "https://geocoding.test/v1/search"
FORECAST_URL = "https://forecast.test/v1/forecast"

LONDON_GEOCODE = {
    "results": [
        {"name": "London", "latitude": 51.5085, "longitude": -0.1257, "country": "United Kingdom"}
    ]
}

LONDON_CURRENT = {
    "current": {
        "time": "2026-10-19T12:00",
        "temperature_2m": 14.2,
        "apparent_temperature": 12.8,
        "relative_humidity_2m": 71,
        "wind_speed_10m": 18.4,
        "wind_gusts_10m": 33.1,
        "weather_code": 2,
    }
}


def open_meteo_handler(geocode=LONDON_GEOCODE, current=LONDON_CURRENT, requests=None):
    """Handler answering geocoding and forecast requests with canned JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.host == "geocoding.test":
            return httpx.Response(200, json=geocode)
        if request.url.host == "forecast.test":
            return httpx.Response(200, json=current)
        return httpx.Response(404)

    return handler


def make_weather_client(handler) -> OpenMeteoClient:
    return OpenMeteoClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        geocoding_url=GEOCODING_URL,
        forecast_url=FORECAST_URL,
    )
