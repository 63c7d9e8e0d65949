"""

Weather workflow nodes and the traced steps they run.

    FetchWeather ──► PlanActivities ──► End(ActivitiesOutput)

Each node delegates to a step function decorated with the tracing helpers,
so a run produces one trace with a workflow span for fetch-weather and an
LLM span for plan-activities.

"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic_graph import BaseNode, End, GraphRunContext

from galileo_agents.app.config import get_settings
from galileo_agents.app.models.domain import ActivitiesOutput, Forecast, WeatherWorkflowState
from galileo_agents.app.utils.helpers import load_prompt
from galileo_agents.app.core.agents.registry import AgentRegistry
from galileo_agents.app.core.agents.runner import ChunkCallback, stream_agent_text
from galileo_agents.app.core.exceptions import WorkflowError
from galileo_agents.app.core.observability.tracing_context import RuntimeContext
from galileo_agents.app.core.observability.tracing_helpers import (
    StepContext,
    llm_step,
    tracing_step,
)
from galileo_agents.app.services.weather import OpenMeteoClient


logger = logging.getLogger(__name__)
settings = get_settings()

WEATHER_WORKFLOW_ID = "weather-workflow"
PLANNING_AGENT = "weather_agent"

ACTIVITY_PROMPT_TEMPLATE = load_prompt("plan_activities.txt")


@dataclass
class WorkflowDeps:
    """Dependencies shared by the nodes of one run."""

    workflow_id: str
    run_id: str
    agents: Optional[AgentRegistry] = None
    weather_client: Optional[OpenMeteoClient] = None
    on_chunk: Optional[ChunkCallback] = None
    runtime_context: RuntimeContext = field(default_factory=RuntimeContext)

    def step_context(self) -> StepContext:
        return StepContext(
            workflow_id=self.workflow_id,
            run_id=self.run_id,
            runtime_context=self.runtime_context,
            deps=self,
        )


def build_activity_prompt(forecast: Forecast) -> str:
    """Prompt asking the weather agent for 3-5 activities suited to ``forecast``."""
    return ACTIVITY_PROMPT_TEMPLATE.format(**forecast.model_dump())


def _activity_prompt(forecast: Optional[Forecast]) -> str:
    return build_activity_prompt(forecast) if forecast is not None else ""


# ----- Steps -----

@tracing_step("fetch-weather", description="Fetches weather forecast for a given city")
async def fetch_weather_step(input_data: Optional[dict[str, Any]], ctx: StepContext) -> Forecast:
    if not input_data or not input_data.get("city"):
        raise WorkflowError("Input data not found")

    city = input_data["city"]
    logger.info("Fetching weather for %s", city)

    client = ctx.deps.weather_client or OpenMeteoClient()
    return await client.get_forecast(city)


@llm_step(
    "plan-activities",
    model=settings.get_agent_model(PLANNING_AGENT),
    get_prompt=_activity_prompt,
    description="Plans activities based on weather forecast using the weather agent",
)
async def plan_activities_step(forecast: Optional[Forecast], ctx: StepContext) -> ActivitiesOutput:
    if forecast is None:
        raise WorkflowError("Forecast data not found")

    agents: Optional[AgentRegistry] = ctx.deps.agents
    if agents is None or agents.get(PLANNING_AGENT) is None:
        raise WorkflowError("Weather agent not found")

    logger.info("Planning activities for %s", forecast.location)

    start = time.perf_counter()
    try:
        text, usage = await stream_agent_text(
            PLANNING_AGENT,
            build_activity_prompt(forecast),
            registry=agents,
            on_chunk=ctx.deps.on_chunk,
            run_id=ctx.run_id,
        )
    except Exception as exc:
        logger.error("Error during activity planning: %s", exc)
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("Activity planning completed in %dms", duration_ms)

    return ActivitiesOutput(activities=text, usage=usage)


# ----- Nodes -----

@dataclass
class FetchWeather(BaseNode[WeatherWorkflowState, WorkflowDeps, ActivitiesOutput]):
    """Geocode the city and fetch its current weather."""

    city: Optional[str] = None

    async def run(self, ctx: GraphRunContext[WeatherWorkflowState, WorkflowDeps]) -> PlanActivities:
        input_data = {"city": self.city} if self.city else None
        forecast = await fetch_weather_step(input_data, ctx.deps.step_context())

        ctx.state.forecast = forecast
        ctx.state.completed_steps.append("fetch-weather")
        return PlanActivities(forecast=forecast)


@dataclass
class PlanActivities(BaseNode[WeatherWorkflowState, WorkflowDeps, ActivitiesOutput]):
    """Ask the weather agent for activities suited to the forecast."""

    forecast: Optional[Forecast] = None

    async def run(
        self, ctx: GraphRunContext[WeatherWorkflowState, WorkflowDeps]
    ) -> End[ActivitiesOutput]:
        output = await plan_activities_step(self.forecast, ctx.deps.step_context())

        ctx.state.activities = output.activities
        ctx.state.completed_steps.append("plan-activities")
        return End(output)


WEATHER_NODES = (FetchWeather, PlanActivities)

__all__ = [
    "WorkflowDeps",
    "FetchWeather",
    "PlanActivities",
    "WEATHER_NODES",
    "WEATHER_WORKFLOW_ID",
    "build_activity_prompt",
    "fetch_weather_step",
    "plan_activities_step",
]
