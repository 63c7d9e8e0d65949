"""
Tests for trace context propagation

Covers the runtime context store, context inheritance for nested calls, the
span lifecycle, and what gets mirrored to the Galileo logger.
"""

import pytest
from pydantic import BaseModel

from galileo_agents.app.core.exceptions import SpanClosedError
from galileo_agents.app.core.observability.tracing_context import (
    RuntimeContext,
    SpanHandle,
    TracingContext,
    TracingContextManager,
    create_child_tracing_context,
    get_tracing_context,
    serialize_payload,
    set_tracing_context,
    usage_counts,
)


class TestRuntimeContext:

    def test_get_set_delete(self):
        rc = RuntimeContext()
        rc.set("city", "London")

        assert rc.get("city") == "London"
        assert rc.has("city")
        assert "city" in rc

        rc.delete("city")
        assert rc.get("city") is None
        assert len(rc) == 0

    def test_delete_missing_key_is_noop(self):
        RuntimeContext().delete("missing")

    def test_initial_values_are_copied(self):
        values = {"a": 1}
        rc = RuntimeContext(values)
        rc.set("b", 2)

        assert values == {"a": 1}
        assert sorted(rc) == ["a", "b"]


class TestTracingContextAccess:

    def test_empty_for_none(self):
        context = get_tracing_context(None)

        assert context == TracingContext()

    def test_set_only_writes_given_fields(self):
        rc = RuntimeContext()
        span = SpanHandle(name="step", span_type="workflow")
        set_tracing_context(rc, TracingContext(trace_id="t1", current_span=span))

        set_tracing_context(rc, TracingContext(trace_id="t2"))

        context = get_tracing_context(rc)
        assert context.trace_id == "t2"
        assert context.current_span is span
        assert context.parent_span is None

    def test_set_on_none_is_noop(self):
        set_tracing_context(None, TracingContext(trace_id="t1"))


class TestChildContext:

    def test_child_inherits_trace_and_parent(self):
        parent = RuntimeContext()
        span = SpanHandle(name="outer", span_type="workflow")
        set_tracing_context(parent, TracingContext(trace_id="trace-1", current_span=span))
        parent.set("unrelated", "value")

        child = create_child_tracing_context(parent)

        assert get_tracing_context(child).trace_id == "trace-1"
        assert get_tracing_context(child).parent_span is span
        assert get_tracing_context(child).current_span is None
        assert "unrelated" not in child

    def test_child_of_none_is_empty(self):
        assert len(create_child_tracing_context(None)) == 0

    def test_child_without_current_span(self):
        parent = RuntimeContext()
        set_tracing_context(parent, TracingContext(trace_id="trace-1"))

        child = create_child_tracing_context(parent)

        assert get_tracing_context(child).trace_id == "trace-1"
        assert get_tracing_context(child).parent_span is None


class TestSpanHandle:

    def test_close_records_output_and_status(self):
        span = SpanHandle(name="step", span_type="workflow")

        duration = span.close({"ok": True})

        assert span.closed
        assert span.status_code == 200
        assert span.output == {"ok": True}
        assert duration >= 0

    def test_error_records_message(self):
        span = SpanHandle(name="step", span_type="workflow")

        span.error(ValueError("bad input"))

        assert span.status_code == 500
        assert span.output == "ValueError: bad input"

    def test_cannot_close_twice(self):
        span = SpanHandle(name="step", span_type="workflow")
        span.close()

        with pytest.raises(SpanClosedError, match="already closed"):
            span.close()
        with pytest.raises(SpanClosedError):
            span.error(RuntimeError("late"))


class TestTracingContextManager:

    def test_initialize_trace(self, tracing, galileo_logger, runtime_context):
        trace_id = tracing.initialize_trace(runtime_context, "workflow-demo", {"run_id": "r1"})

        assert tracing.get_trace_id(runtime_context) == trace_id
        assert galileo_logger.last("start_trace") == {
            "input": "workflow-demo",
            "name": "workflow-demo",
            "metadata": {"run_id": "r1"},
        }

    def test_workflow_span_nesting(self, tracing, runtime_context):
        tracing.initialize_trace(runtime_context, "trace")
        outer = tracing.create_workflow_span(runtime_context, "outer")
        inner = tracing.create_workflow_span(runtime_context, "inner")

        assert inner.parent is outer
        assert tracing.get_current_span(runtime_context) is inner
        assert tracing.get_parent_span(runtime_context) is outer

        tracing.close_current_span(runtime_context, "inner done")

        assert tracing.get_current_span(runtime_context) is outer
        assert tracing.get_parent_span(runtime_context) is None

        tracing.close_current_span(runtime_context, "outer done")

        assert tracing.get_current_span(runtime_context) is None

    def test_span_under_inherited_parent(self, local_tracing, runtime_context):
        outer = local_tracing.create_workflow_span(runtime_context, "outer")
        child = local_tracing.create_child_context(runtime_context)

        inner = local_tracing.create_workflow_span(child, "inner")

        assert inner.parent is outer
        local_tracing.close_current_span(child)
        assert local_tracing.get_parent_span(child) is outer

    def test_workflow_span_exported(self, tracing, galileo_logger, runtime_context):
        tracing.create_workflow_span(runtime_context, "fetch-weather", {"city": "Paris"}, {"step_id": "fetch-weather"})
        tracing.close_current_span(runtime_context, {"temperature": 20})

        assert galileo_logger.methods() == ["add_workflow_span", "conclude"]
        assert galileo_logger.last("add_workflow_span")["input"] == '{"city": "Paris"}'
        concluded = galileo_logger.last("conclude")
        assert concluded["output"] == '{"temperature": 20}'
        assert concluded["status_code"] == 200
        assert concluded["duration_ns"] >= 0

    def test_llm_span_exported_on_close(self, tracing, galileo_logger, runtime_context):
        tracing.create_llm_span(runtime_context, "plan", "openai:gpt-4o-mini", "Suggest activities")
        assert galileo_logger.calls == []

        tracing.close_current_span(
            runtime_context,
            "1. Walk",
            usage={"prompt_tokens": 12, "completion_tokens": 30},
        )

        exported = galileo_logger.last("add_llm_span")
        assert exported["input"] == "Suggest activities"
        assert exported["output"] == "1. Walk"
        assert exported["model"] == "openai:gpt-4o-mini"
        assert exported["num_input_tokens"] == 12
        assert exported["num_output_tokens"] == 30
        assert exported["total_tokens"] == 42
        assert exported["status_code"] == 200

    def test_handle_span_error(self, tracing, galileo_logger, runtime_context):
        outer = tracing.create_workflow_span(runtime_context, "outer")
        failing = tracing.create_workflow_span(runtime_context, "failing")

        closed = tracing.handle_span_error(runtime_context, RuntimeError("upstream down"))

        assert closed is failing
        assert failing.status_code == 500
        assert tracing.get_current_span(runtime_context) is outer
        assert galileo_logger.last("conclude")["output"] == "RuntimeError: upstream down"
        assert galileo_logger.last("conclude")["status_code"] == 500

    def test_close_without_span_returns_none(self, tracing, galileo_logger, runtime_context):
        assert tracing.close_current_span(runtime_context) is None
        assert tracing.handle_span_error(runtime_context, ValueError("x")) is None
        assert galileo_logger.calls == []

    def test_conclude_trace_clears_context(self, tracing, galileo_logger, runtime_context):
        tracing.initialize_trace(runtime_context, "trace")
        tracing.create_workflow_span(runtime_context, "left-open")

        tracing.conclude_trace(runtime_context, {"done": True})

        assert galileo_logger.last("conclude") == {"output": '{"done": true}', "conclude_all": True}
        assert tracing.get_trace_id(runtime_context) is None
        assert tracing.get_current_span(runtime_context) is None

    def test_conclude_without_trace_is_noop(self, tracing, galileo_logger, runtime_context):
        tracing.conclude_trace(runtime_context, "ignored")

        assert galileo_logger.calls == []

    def test_local_tracking_without_logger(self, local_tracing, runtime_context):
        local_tracing.initialize_trace(runtime_context, "trace")
        span = local_tracing.create_workflow_span(runtime_context, "step")
        local_tracing.close_current_span(runtime_context, "done")

        assert span.closed
        assert span.output == "done"

    def test_logger_provider_failure_falls_back_to_local(self, runtime_context):
        def broken_provider():
            raise RuntimeError("no api key")

        tracing = TracingContextManager(logger_provider=broken_provider)

        tracing.initialize_trace(runtime_context, "trace")
        span = tracing.create_workflow_span(runtime_context, "step")
        tracing.close_current_span(runtime_context)

        assert span.closed


class _Payload(BaseModel):
    city: str


class TestSerialization:

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("plain", "plain"),
        ({"a": 1}, '{"a": 1}'),
        ([1, 2], "[1, 2]"),
        (_Payload(city="Oslo"), '{"city":"Oslo"}'),
    ])
    def test_serialize_payload(self, value, expected):
        assert serialize_payload(value) == expected

    def test_usage_counts_from_dict(self):
        assert usage_counts({"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}) == (5, 7, 12)

    def test_usage_counts_from_object(self):
        class Usage:
            input_tokens = 3
            output_tokens = 4

        assert usage_counts(Usage()) == (3, 4, 7)

    def test_usage_counts_none(self):
        assert usage_counts(None) == (None, None, None)
