"""

This module defines the workflow graphs and runs them.

Every run gets its own RuntimeContext. The first traced step starts the
workflow trace; the executor concludes it when the run ends (including on
failure) and flushes Galileo so the trace shows up without waiting for
process exit.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Type
from uuid import uuid4

from pydantic import BaseModel
from pydantic_graph import BaseNode, Graph

from galileo_agents.app.models.domain import (
    WeatherWorkflowState,
    WorkflowInfo,
    WorkflowRunResult,
)
from galileo_agents.app.models.requests import TracingExampleRequest, WeatherWorkflowRequest
from galileo_agents.app.core.agents.registry import AgentRegistry, agent_registry
from galileo_agents.app.core.agents.runner import ChunkCallback
from galileo_agents.app.core.exceptions import WorkflowNotFoundError
from galileo_agents.app.core.graph.nodes import (
    WEATHER_NODES,
    WEATHER_WORKFLOW_ID,
    FetchWeather,
    WorkflowDeps,
)
from galileo_agents.app.core.graph.tracing_example import (
    TRACING_EXAMPLE_NODES,
    TRACING_EXAMPLE_WORKFLOW_ID,
    DataProcessing,
    TracingExampleState,
)
from galileo_agents.app.core.observability.galileo_logger import flush_galileo
from galileo_agents.app.core.observability.tracing_context import (
    RuntimeContext,
    tracing_context_manager,
)
from galileo_agents.app.services.weather import OpenMeteoClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowDefinition:
    """A runnable workflow: its graph, input model, and how to start it."""

    id: str
    description: str
    graph: Graph
    input_model: Type[BaseModel]
    start_node: Type[BaseNode]
    start_kwargs: Callable[[Any], dict[str, Any]]
    initial_state: Callable[[Any, str], BaseModel]
    steps: tuple[str, ...]

    def info(self) -> WorkflowInfo:
        return WorkflowInfo(
            id=self.id,
            description=self.description,
            steps=list(self.steps),
            input_schema=self.input_model.model_json_schema(),
        )


# Define the workflow graphs
weather_graph = Graph(
    nodes=WEATHER_NODES,
    state_type=WeatherWorkflowState,
    name="weather_workflow",
)

tracing_example_graph = Graph(
    nodes=TRACING_EXAMPLE_NODES,
    state_type=TracingExampleState,
    name="tracing_example_workflow",
)


WORKFLOWS: dict[str, WorkflowDefinition] = {
    WEATHER_WORKFLOW_ID: WorkflowDefinition(
        id=WEATHER_WORKFLOW_ID,
        description="Fetches the current weather for a city and suggests activities for it",
        graph=weather_graph,
        input_model=WeatherWorkflowRequest,
        start_node=FetchWeather,
        start_kwargs=lambda payload: {"city": payload.city},
        initial_state=lambda payload, run_id: WeatherWorkflowState(run_id=run_id, city=payload.city),
        steps=("fetch-weather", "plan-activities"),
    ),
    TRACING_EXAMPLE_WORKFLOW_ID: WorkflowDefinition(
        id=TRACING_EXAMPLE_WORKFLOW_ID,
        description="Example workflow demonstrating automatic tracing",
        graph=tracing_example_graph,
        input_model=TracingExampleRequest,
        start_node=DataProcessing,
        start_kwargs=lambda payload: {"data": payload.data},
        initial_state=lambda payload, run_id: TracingExampleState(data=payload.data),
        steps=("data-processing", "validation"),
    ),
}


def get_workflow(workflow_id: str) -> WorkflowDefinition:
    """Look up a workflow, raising WorkflowNotFoundError if the id is unknown."""
    definition = WORKFLOWS.get(workflow_id)
    if definition is None:
        raise WorkflowNotFoundError(f"Workflow '{workflow_id}' not found")
    return definition


def list_workflows() -> list[WorkflowInfo]:
    return [definition.info() for definition in WORKFLOWS.values()]


async def run_workflow(
    workflow_id: str,
    inputs: dict[str, Any],
    *,
    agents: Optional[AgentRegistry] = None,
    weather_client: Optional[OpenMeteoClient] = None,
    on_chunk: Optional[ChunkCallback] = None,
    runtime_context: Optional[RuntimeContext] = None,
) -> WorkflowRunResult:
    """
    Run a registered workflow to completion.

    Args:
        workflow_id: Registered workflow id
        inputs: Workflow input, validated against the workflow's input model
        agents: Registry the steps look agents up in
        weather_client: Open-Meteo client for the fetch-weather step
        on_chunk: Receives streamed agent text as it arrives
        runtime_context: Per-run context (a fresh one by default)

    Raises:
        WorkflowNotFoundError: Unknown workflow id
        pydantic.ValidationError: Inputs do not match the input model
        Exception: Whatever a step raised, after the trace is concluded
    """
    definition = get_workflow(workflow_id)
    payload = definition.input_model.model_validate(inputs)

    run_id = uuid4().hex
    started_at = datetime.now(timezone.utc)
    deps = WorkflowDeps(
        workflow_id=workflow_id,
        run_id=run_id,
        agents=agents if agents is not None else agent_registry,
        weather_client=weather_client,
        on_chunk=on_chunk,
        runtime_context=runtime_context if runtime_context is not None else RuntimeContext(),
    )
    state = definition.initial_state(payload, run_id)

    logger.info("Starting workflow %s (run %s)", workflow_id, run_id)
    try:
        result = await definition.graph.run(
            definition.start_node(**definition.start_kwargs(payload)),
            state=state,
            deps=deps,
        )
    except Exception as exc:
        logger.error("Workflow %s (run %s) failed: %s", workflow_id, run_id, exc)
        tracing_context_manager.conclude_trace(deps.runtime_context, {"error": str(exc)})
        await flush_galileo()
        raise

    output = result.output
    tracing_context_manager.conclude_trace(deps.runtime_context, output)
    await flush_galileo()

    logger.info("Workflow %s (run %s) completed", workflow_id, run_id)
    return WorkflowRunResult(
        workflow_id=workflow_id,
        run_id=run_id,
        output=output.model_dump(),
        completed_steps=list(state.completed_steps),
        started_at=started_at,
        completed_at=datetime.now(timezone.utc),
    )


async def run_weather_workflow(city: str, **kwargs: Any) -> WorkflowRunResult:
    """Run the weather workflow for ``city``."""
    return await run_workflow(WEATHER_WORKFLOW_ID, {"city": city}, **kwargs)


def get_workflow_mermaid(workflow_id: str) -> str:
    """
    Generate a Mermaid diagram of a workflow graph.

    Example:
        >>> print(get_workflow_mermaid("weather-workflow"))
    """
    definition = get_workflow(workflow_id)
    return definition.graph.mermaid_code(start_node=definition.start_node)


__all__ = [
    "WorkflowDefinition",
    "WORKFLOWS",
    "weather_graph",
    "tracing_example_graph",
    "get_workflow",
    "list_workflows",
    "run_workflow",
    "run_weather_workflow",
    "get_workflow_mermaid",
]
