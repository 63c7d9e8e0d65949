"""
Trace context propagation for workflow runs.

A ``RuntimeContext`` is a keyed store created per workflow run. The tracing
keys it carries are the trace id, the span currently open, and the span new
spans should nest under. ``TracingContextManager`` opens and closes spans on
top of that store and mirrors them to the Galileo logger when Galileo is
enabled. With Galileo disabled the same span bookkeeping happens locally, so
steps behave identically in tests and offline runs.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.exceptions import SpanClosedError
from galileo_agents.app.core.observability.galileo_logger import SpanType, get_galileo_logger


logger = logging.getLogger(__name__)

TRACE_ID_KEY = "trace_id"
CURRENT_SPAN_KEY = "current_span"
PARENT_SPAN_KEY = "parent_span"


class RuntimeContext:
    """Keyed store scoped to a single run."""

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def has(self, key: str) -> bool:
        return key in self._values

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)


@dataclass
class SpanHandle:
    """
    One traced operation.

    A handle is closed exactly once, either with ``close`` or ``error``.
    Any further close raises SpanClosedError.
    """

    name: str
    span_type: SpanType
    input: Any = None
    metadata: Dict[str, str] = field(default_factory=dict)
    model: Optional[str] = None
    parent: Optional["SpanHandle"] = field(default=None, repr=False)
    span_id: str = field(default_factory=lambda: uuid4().hex)
    output: Any = None
    status_code: Optional[int] = None
    closed: bool = False
    _started_ns: int = field(default_factory=time.perf_counter_ns, repr=False)
    _ended_ns: Optional[int] = field(default=None, repr=False)
    _restore: Tuple[Optional["SpanHandle"], Optional["SpanHandle"]] = field(
        default=(None, None), repr=False
    )

    @property
    def duration_ns(self) -> int:
        end = self._ended_ns if self._ended_ns is not None else time.perf_counter_ns()
        return end - self._started_ns

    def close(self, output: Any = None) -> int:
        """Mark the span successful; returns its duration in nanoseconds."""
        self._finish(output, 200)
        return self.duration_ns

    def error(self, error: BaseException) -> int:
        """Mark the span failed; returns its duration in nanoseconds."""
        self._finish(f"{type(error).__name__}: {error}", 500)
        return self.duration_ns

    def _finish(self, output: Any, status_code: int) -> None:
        if self.closed:
            raise SpanClosedError(f"Span '{self.name}' ({self.span_id}) is already closed")
        self.closed = True
        self.output = output
        self.status_code = status_code
        self._ended_ns = time.perf_counter_ns()


@dataclass
class TracingContext:
    trace_id: Optional[str] = None
    current_span: Optional[SpanHandle] = None
    parent_span: Optional[SpanHandle] = None


def get_tracing_context(runtime_context: Optional[RuntimeContext]) -> TracingContext:
    """Read the tracing keys from a runtime context (empty when there is none)."""
    if runtime_context is None:
        return TracingContext()
    return TracingContext(
        trace_id=runtime_context.get(TRACE_ID_KEY),
        current_span=runtime_context.get(CURRENT_SPAN_KEY),
        parent_span=runtime_context.get(PARENT_SPAN_KEY),
    )


def set_tracing_context(
    runtime_context: Optional[RuntimeContext],
    context: TracingContext,
) -> None:
    """Write the fields of ``context`` that are set; unset fields leave existing values alone."""
    if runtime_context is None:
        return
    if context.trace_id:
        runtime_context.set(TRACE_ID_KEY, context.trace_id)
    if context.current_span is not None:
        runtime_context.set(CURRENT_SPAN_KEY, context.current_span)
    if context.parent_span is not None:
        runtime_context.set(PARENT_SPAN_KEY, context.parent_span)


def create_child_tracing_context(parent_context: Optional[RuntimeContext]) -> RuntimeContext:
    """
    New runtime context for a nested call.

    The child inherits the trace id, and the parent's current span becomes the
    child's parent span. Nothing else is copied.
    """
    child = RuntimeContext()
    if parent_context is None:
        return child

    trace_id = parent_context.get(TRACE_ID_KEY)
    if trace_id:
        child.set(TRACE_ID_KEY, trace_id)

    current_span = parent_context.get(CURRENT_SPAN_KEY)
    if current_span is not None:
        child.set(PARENT_SPAN_KEY, current_span)

    return child


def serialize_payload(value: Any) -> str:
    """Render span input/output as the string payload Galileo expects."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


def _string_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
    if not metadata:
        return {}
    return {
        str(key): value if isinstance(value, str) else serialize_payload(value)
        for key, value in metadata.items()
        if value is not None
    }


def usage_counts(usage: Any) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Pull (input, output, total) token counts from a usage dict or object."""
    if usage is None:
        return None, None, None

    def pick(*names: str) -> Optional[int]:
        for name in names:
            value = usage.get(name) if isinstance(usage, dict) else getattr(usage, name, None)
            if value is not None:
                return int(value)
        return None

    input_tokens = pick("input_tokens", "request_tokens", "prompt_tokens")
    output_tokens = pick("output_tokens", "response_tokens", "completion_tokens")
    total_tokens = pick("total_tokens")
    if total_tokens is None and input_tokens is not None and output_tokens is not None:
        total_tokens = input_tokens + output_tokens
    return input_tokens, output_tokens, total_tokens


def _default_logger_provider() -> Any:
    if not get_settings().galileo_enabled:
        return None
    return get_galileo_logger()


class TracingContextManager:
    """
    Opens, nests and closes spans for a run.

    Args:
        logger_provider: Returns the Galileo logger to mirror spans to, or None
            to track spans locally only. Defaults to the configured Galileo
            logger when GALILEO_ENABLED is true.
    """

    def __init__(self, logger_provider: Optional[Callable[[], Any]] = None) -> None:
        self._logger_provider = logger_provider or _default_logger_provider

    def _sdk_logger(self) -> Any:
        try:
            return self._logger_provider()
        except Exception as exc:
            logger.warning("Galileo logger unavailable, tracking spans locally: %s", exc)
            return None

    # ----- accessors -----

    def get_trace_id(self, runtime_context: RuntimeContext) -> Optional[str]:
        return runtime_context.get(TRACE_ID_KEY)

    def get_current_span(self, runtime_context: RuntimeContext) -> Optional[SpanHandle]:
        return runtime_context.get(CURRENT_SPAN_KEY)

    def get_parent_span(self, runtime_context: RuntimeContext) -> Optional[SpanHandle]:
        return runtime_context.get(PARENT_SPAN_KEY)

    # ----- traces -----

    def initialize_trace(
        self,
        runtime_context: RuntimeContext,
        name: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Start a trace and store its id in the runtime context."""
        trace_id = uuid4().hex
        sdk = self._sdk_logger()
        if sdk is not None:
            sdk.start_trace(input=name, name=name, metadata=_string_metadata(metadata))

        runtime_context.set(TRACE_ID_KEY, trace_id)
        logger.debug("Trace started", extra={"trace_id": trace_id, "trace_name": name})
        return trace_id

    def conclude_trace(self, runtime_context: RuntimeContext, output: Any = None) -> None:
        """Conclude the trace and anything still open under it."""
        if not self.get_trace_id(runtime_context):
            return

        sdk = self._sdk_logger()
        if sdk is not None:
            sdk.conclude(output=serialize_payload(output), conclude_all=True)

        runtime_context.delete(TRACE_ID_KEY)
        runtime_context.delete(CURRENT_SPAN_KEY)
        runtime_context.delete(PARENT_SPAN_KEY)

    # ----- spans -----

    def create_workflow_span(
        self,
        runtime_context: RuntimeContext,
        name: str,
        input: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SpanHandle:
        span = SpanHandle(
            name=name,
            span_type="workflow",
            input=input,
            metadata=_string_metadata(metadata),
        )
        sdk = self._sdk_logger()
        if sdk is not None:
            sdk.add_workflow_span(
                input=serialize_payload(input),
                name=name,
                metadata=span.metadata,
            )
        self._push(runtime_context, span)
        return span

    def create_llm_span(
        self,
        runtime_context: RuntimeContext,
        name: str,
        model: str,
        prompt: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SpanHandle:
        # LLM spans are leaf records; they reach Galileo when they close.
        span = SpanHandle(
            name=name,
            span_type="llm",
            input=prompt,
            model=model,
            metadata=_string_metadata(metadata),
        )
        self._push(runtime_context, span)
        return span

    def close_current_span(
        self,
        runtime_context: RuntimeContext,
        output: Any = None,
        usage: Any = None,
    ) -> Optional[SpanHandle]:
        """Close the current span with its output; the previous span becomes current again."""
        span = self.get_current_span(runtime_context)
        if span is None:
            logger.debug("close_current_span called without an open span")
            return None

        duration_ns = span.close(output)
        self._export(span, serialize_payload(output), duration_ns, usage)
        self._pop(runtime_context, span)
        return span

    def handle_span_error(
        self,
        runtime_context: RuntimeContext,
        error: BaseException,
    ) -> Optional[SpanHandle]:
        """Close the current span as failed."""
        span = self.get_current_span(runtime_context)
        if span is None:
            logger.debug("handle_span_error called without an open span")
            return None

        duration_ns = span.error(error)
        self._export(span, span.output, duration_ns, None)
        self._pop(runtime_context, span)
        return span

    def create_child_context(self, runtime_context: RuntimeContext) -> RuntimeContext:
        return create_child_tracing_context(runtime_context)

    # ----- internals -----

    def _export(self, span: SpanHandle, output: str, duration_ns: int, usage: Any) -> None:
        sdk = self._sdk_logger()
        if sdk is None:
            return

        if span.span_type == "llm":
            input_tokens, output_tokens, total_tokens = usage_counts(usage)
            sdk.add_llm_span(
                input=serialize_payload(span.input),
                output=output,
                model=span.model,
                name=span.name,
                duration_ns=duration_ns,
                metadata=span.metadata,
                num_input_tokens=input_tokens,
                num_output_tokens=output_tokens,
                total_tokens=total_tokens,
                status_code=span.status_code,
            )
        else:
            sdk.conclude(output=output, duration_ns=duration_ns, status_code=span.status_code)

    @staticmethod
    def _push(runtime_context: RuntimeContext, span: SpanHandle) -> None:
        previous_current = runtime_context.get(CURRENT_SPAN_KEY)
        previous_parent = runtime_context.get(PARENT_SPAN_KEY)
        span.parent = previous_current or previous_parent
        span._restore = (previous_current, previous_parent)

        runtime_context.set(CURRENT_SPAN_KEY, span)
        if span.parent is not None:
            runtime_context.set(PARENT_SPAN_KEY, span.parent)

    @staticmethod
    def _pop(runtime_context: RuntimeContext, span: SpanHandle) -> None:
        previous_current, previous_parent = span._restore
        for key, value in ((CURRENT_SPAN_KEY, previous_current), (PARENT_SPAN_KEY, previous_parent)):
            if value is None:
                runtime_context.delete(key)
            else:
                runtime_context.set(key, value)


tracing_context_manager = TracingContextManager()

__all__ = [
    "RuntimeContext",
    "SpanHandle",
    "TracingContext",
    "TracingContextManager",
    "tracing_context_manager",
    "get_tracing_context",
    "set_tracing_context",
    "create_child_tracing_context",
    "serialize_payload",
    "usage_counts",
]
