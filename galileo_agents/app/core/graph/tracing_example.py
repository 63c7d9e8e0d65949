"""
Tracing example workflow.

    DataProcessing ──► Validation ──► End(ValidationOutput)

Shows how steps pick up the trace started for the run: both steps report the
trace id they saw, and the validation step runs with the data-processing span
already closed, so its span is a sibling rather than a child.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_graph import BaseNode, End, GraphRunContext

from galileo_agents.app.core.exceptions import WorkflowError
from galileo_agents.app.core.graph.nodes import WorkflowDeps
from galileo_agents.app.core.observability.tracing_helpers import (
    StepContext,
    get_tracing_info,
    tracing_step,
)


logger = logging.getLogger(__name__)

TRACING_EXAMPLE_WORKFLOW_ID = "tracing-example-workflow"


class ProcessingMetadata(BaseModel):
    processed_at: str
    trace_id: Optional[str] = None


class ProcessedData(BaseModel):
    processed_data: str
    metadata: ProcessingMetadata


class TraceSummary(BaseModel):
    trace_id: Optional[str] = None
    step_count: int


class ValidationOutput(BaseModel):
    is_valid: bool
    validated_data: str
    trace: TraceSummary


class TracingExampleState(BaseModel):
    data: str = ""
    completed_steps: list[str] = Field(default_factory=list)


@tracing_step(
    "data-processing",
    description="Process incoming data",
    span_metadata={"category": "data-processing", "tags": ["transformation", "validation"]},
)
async def data_processing_step(input_data: Optional[dict], ctx: StepContext) -> ProcessedData:
    if input_data is None or "data" not in input_data:
        raise WorkflowError("Input data not found")

    info = get_tracing_info(ctx.runtime_context)
    logger.info("Processing data in trace: %s", info["trace_id"])
    logger.debug("Current span exists: %s", info["has_current_span"])

    # Simulated processing work
    await asyncio.sleep(0.01)

    return ProcessedData(
        processed_data=input_data["data"].upper(),
        metadata=ProcessingMetadata(
            processed_at=datetime.now(timezone.utc).isoformat(),
            trace_id=info["trace_id"],
        ),
    )


@tracing_step(
    "validation",
    description="Validate processed data",
    span_metadata={"category": "validation", "tags": ["quality-check", "business-rules"]},
)
async def validation_step(input_data: Optional[ProcessedData], ctx: StepContext) -> ValidationOutput:
    if input_data is None:
        raise WorkflowError("Input data not found")

    info = get_tracing_info(ctx.runtime_context)
    logger.info("Validating data in trace: %s", info["trace_id"])
    logger.debug("Has parent span: %s", info["has_parent_span"])

    return ValidationOutput(
        is_valid=len(input_data.processed_data) > 0,
        validated_data=input_data.processed_data,
        trace=TraceSummary(trace_id=info["trace_id"], step_count=2),
    )


@dataclass
class DataProcessing(BaseNode[TracingExampleState, WorkflowDeps, ValidationOutput]):
    data: Optional[str] = None

    async def run(self, ctx: GraphRunContext[TracingExampleState, WorkflowDeps]) -> Validation:
        input_data = {"data": self.data} if self.data is not None else None
        processed = await data_processing_step(input_data, ctx.deps.step_context())
        ctx.state.completed_steps.append("data-processing")
        return Validation(processed=processed)


@dataclass
class Validation(BaseNode[TracingExampleState, WorkflowDeps, ValidationOutput]):
    processed: Optional[ProcessedData] = None

    async def run(
        self, ctx: GraphRunContext[TracingExampleState, WorkflowDeps]
    ) -> End[ValidationOutput]:
        output = await validation_step(self.processed, ctx.deps.step_context())
        ctx.state.completed_steps.append("validation")
        return End(output)


TRACING_EXAMPLE_NODES = (DataProcessing, Validation)

__all__ = [
    "DataProcessing",
    "Validation",
    "TracingExampleState",
    "ProcessedData",
    "ValidationOutput",
    "TRACING_EXAMPLE_NODES",
    "TRACING_EXAMPLE_WORKFLOW_ID",
    "data_processing_step",
    "validation_step",
]
