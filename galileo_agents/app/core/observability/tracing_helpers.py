"""
Step decorators that put workflow steps under a trace.

A step is ``async def step(input_data, ctx: StepContext)``. ``tracing_step``
opens a workflow span around the step; ``llm_step`` opens an LLM span whose
input is the prompt built from the step input. Both start the workflow trace
on first use (``auto_trace``) and close the span as failed when the step
raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from galileo_agents.app.core.observability.tracing_context import (
    RuntimeContext,
    SpanHandle,
    TracingContextManager,
    create_child_tracing_context,
    get_tracing_context,
    tracing_context_manager,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

StepFunc = Callable[[Any, "StepContext"], Awaitable[T]]


@dataclass
class StepContext:
    """What a traced step gets besides its input."""

    workflow_id: str
    run_id: str
    runtime_context: RuntimeContext
    run_count: int = 0
    deps: Any = None


def _ensure_trace(
    manager: TracingContextManager,
    ctx: StepContext,
) -> None:
    if manager.get_trace_id(ctx.runtime_context):
        return
    manager.initialize_trace(
        ctx.runtime_context,
        f"workflow-{ctx.workflow_id}",
        {"workflow_id": ctx.workflow_id, "run_id": ctx.run_id},
    )


def _step_metadata(
    step_id: str,
    description: Optional[str],
    ctx: StepContext,
    extra: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {
        "step_id": step_id,
        "description": description,
        "run_count": ctx.run_count,
    }
    if extra:
        metadata.update(extra)
    return metadata


def tracing_step(
    step_id: str,
    *,
    description: Optional[str] = None,
    auto_trace: bool = True,
    span_metadata: Optional[Dict[str, Any]] = None,
    manager: Optional[TracingContextManager] = None,
) -> Callable[[StepFunc], StepFunc]:
    """
    Wrap a step in a workflow span named after ``step_id``.

    Args:
        step_id: Step identifier, used as the span name
        description: Recorded in span metadata
        auto_trace: Start the workflow trace if the run has none yet
        span_metadata: Extra span metadata
        manager: Tracing manager (the module singleton by default)
    """
    def decorator(func: StepFunc) -> StepFunc:
        @wraps(func)
        async def wrapper(input_data: Any, ctx: StepContext) -> Any:
            tracing = manager or tracing_context_manager
            if auto_trace:
                _ensure_trace(tracing, ctx)

            tracing.create_workflow_span(
                ctx.runtime_context,
                step_id,
                input_data,
                _step_metadata(step_id, description, ctx, span_metadata),
            )
            try:
                result = await func(input_data, ctx)
            except Exception as exc:
                logger.error("Step '%s' failed: %s", step_id, exc)
                tracing.handle_span_error(ctx.runtime_context, exc)
                raise

            tracing.close_current_span(ctx.runtime_context, result)
            return result

        wrapper.step_id = step_id  # type: ignore[attr-defined]
        return wrapper

    return decorator


def llm_step(
    step_id: str,
    *,
    model: str,
    get_prompt: Callable[[Any], str],
    description: Optional[str] = None,
    span_metadata: Optional[Dict[str, Any]] = None,
    manager: Optional[TracingContextManager] = None,
) -> Callable[[StepFunc], StepFunc]:
    """
    Wrap a model-calling step in an LLM span.

    The prompt recorded on the span is ``get_prompt(input_data)``. A step that
    returns an object with a ``usage`` attribute, or a dict with a ``usage``
    key, has its token counts attached to the span when it closes.

    Example:
        @llm_step("summarise", model="openai:gpt-4o-mini", get_prompt=lambda d: d["text"])
        async def summarise(input_data, ctx):
            ...
    """
    def decorator(func: StepFunc) -> StepFunc:
        @wraps(func)
        async def wrapper(input_data: Any, ctx: StepContext) -> Any:
            tracing = manager or tracing_context_manager
            _ensure_trace(tracing, ctx)

            tracing.create_llm_span(
                ctx.runtime_context,
                step_id,
                model,
                get_prompt(input_data),
                _step_metadata(step_id, description, ctx, span_metadata),
            )
            try:
                result = await func(input_data, ctx)
            except Exception as exc:
                logger.error("LLM step '%s' failed: %s", step_id, exc)
                tracing.handle_span_error(ctx.runtime_context, exc)
                raise

            if isinstance(result, dict):
                usage = result.get("usage")
            else:
                usage = getattr(result, "usage", None)
            tracing.close_current_span(ctx.runtime_context, result, usage=usage)
            return result

        wrapper.step_id = step_id  # type: ignore[attr-defined]
        return wrapper

    return decorator


def create_manual_workflow_span(
    runtime_context: RuntimeContext,
    name: str,
    input: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
    manager: Optional[TracingContextManager] = None,
) -> SpanHandle:
    """Open a workflow span by hand; close it with ``close_current_span``."""
    return (manager or tracing_context_manager).create_workflow_span(
        runtime_context, name, input, metadata
    )


def create_manual_llm_span(
    runtime_context: RuntimeContext,
    name: str,
    model: str,
    prompt: str,
    metadata: Optional[Dict[str, Any]] = None,
    manager: Optional[TracingContextManager] = None,
) -> SpanHandle:
    return (manager or tracing_context_manager).create_llm_span(
        runtime_context, name, model, prompt, metadata
    )


def get_tracing_info(runtime_context: Optional[RuntimeContext]) -> Dict[str, Any]:
    """Summary of the tracing state of a run, safe to return from a step."""
    context = get_tracing_context(runtime_context)
    return {
        "trace_id": context.trace_id,
        "has_current_span": context.current_span is not None,
        "has_parent_span": context.parent_span is not None,
        "current_span": context.current_span.name if context.current_span else None,
        "parent_span": context.parent_span.name if context.parent_span else None,
    }


__all__ = [
    "StepContext",
    "tracing_step",
    "llm_step",
    "create_manual_workflow_span",
    "create_manual_llm_span",
    "create_child_tracing_context",
    "get_tracing_info",
]
