"""
Weather Tool

Current conditions for a city from Open-Meteo.
"""

from typing import Any, List, Optional

from galileo_agents.app.services.weather import OpenMeteoClient
from .base import Tool, ToolParameter, ToolError


class GetWeatherTool(Tool):
    """Geocodes a city and returns its current weather conditions."""

    def __init__(self, client: Optional[OpenMeteoClient] = None):
        super().__init__()
        self.client = client or OpenMeteoClient()

    def get_name(self) -> str:
        return "get_weather"

    def get_description(self) -> str:
        return "Get current weather for a location"

    def get_parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="location",
                type="string",
                description="City name",
                required=True
            )
        ]

    def validate_input(self, **kwargs) -> bool:
        super().validate_input(**kwargs)

        location = kwargs.get("location")
        if not isinstance(location, str) or not location.strip():
            raise ToolError("Location is required", self.name)
        return True

    async def execute(self, location: str) -> Any:
        forecast = await self.client.get_forecast(location.strip())
        return forecast.model_dump()
