"""
Domain Models - Core business entities

These represent the core concepts in your application domain.
"""

from typing import Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict


class Forecast(BaseModel):
    """
    Current weather conditions for a geocoded location.

    Produced by the fetch-weather step and the get_weather tool; consumed by
    the plan-activities step. Units follow Open-Meteo defaults (°C, %, km/h).
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "location": "London",
                "temperature": 14.2,
                "feels_like": 12.8,
                "humidity": 71,
                "wind_speed": 18.4,
                "wind_gust": 33.1,
                "conditions": "Partly cloudy",
            }
        }
    )

    location: str = Field(..., description="Resolved location name")
    temperature: float = Field(..., description="Air temperature at 2m (°C)")
    feels_like: float = Field(..., description="Apparent temperature (°C)")
    humidity: float = Field(..., description="Relative humidity at 2m (%)")
    wind_speed: float = Field(..., description="Wind speed at 10m (km/h)")
    wind_gust: float = Field(..., description="Wind gusts at 10m (km/h)")
    conditions: str = Field(..., description="Human-readable weather condition")


class ActivitiesOutput(BaseModel):
    """Output of the weather workflow."""

    activities: str = Field(..., description="Numbered list of suggested activities")

    # Token usage of the planning run, attached to the LLM span; not part of the output
    usage: Optional[dict[str, int]] = Field(default=None, exclude=True)


class WeatherWorkflowState(BaseModel):
    """
    State carried through a weather-workflow run.

    Each step writes its output here so a failed run still shows how far it got.
    """

    model_config = ConfigDict(validate_assignment=True)

    run_id: Optional[str] = Field(
        default=None,
        description="Unique identifier for this run (for tracing and correlation)"
    )

    city: str = Field(
        default="",
        description="City requested by the caller"
    )

    forecast: Optional[Forecast] = Field(
        default=None,
        description="Output of the fetch-weather step"
    )

    activities: str = Field(
        default="",
        description="Output of the plan-activities step"
    )

    completed_steps: list[str] = Field(
        default_factory=list,
        description="Step ids in completion order"
    )


class AgentMetadata(BaseModel):
    """Metadata describing an agent for discovery/registry."""

    name: str = Field(..., description="Unique agent name")
    role: str = Field(..., description="Role or function of the agent")
    description: str = Field(..., description="Human-readable description")
    model: str = Field(..., description="Model backing the agent")
    tools: list[str] = Field(default_factory=list, description="Tools available to the agent")


class WorkflowInfo(BaseModel):
    """A registered workflow as listed by the API."""

    id: str
    description: str
    steps: list[str] = Field(default_factory=list)
    input_schema: dict[str, Any] = Field(default_factory=dict)


class WorkflowRunResult(BaseModel):
    """Outcome of one workflow run."""

    workflow_id: str
    run_id: str
    output: dict[str, Any] = Field(default_factory=dict)
    completed_steps: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None


class ChatReply(BaseModel):
    """An agent's reply to one chat message."""

    agent: str
    thread_id: str
    reply: str
    usage: dict[str, int] = Field(default_factory=dict)
