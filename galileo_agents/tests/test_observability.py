"""
Tests for the logfire agent tracer.
"""

from types import SimpleNamespace

import pytest

from galileo_agents.app.core.observability import tracer as tracer_module
from galileo_agents.app.core.observability.tracer import (
    AgentExecutionMetrics,
    AgentTracer,
    get_tracer,
    usage_to_dict,
)


@pytest.fixture
def quiet_tracer(monkeypatch):
    """Global tracer with logfire spans switched off."""
    tracer = AgentTracer(enable_tracing=False)
    monkeypatch.setattr(tracer_module, "_tracer", tracer)
    return tracer


class TestAgentTracer:
    """Test suite for AgentTracer class."""

    def test_tracer_initialization_disabled(self):
        tracer = AgentTracer(enable_tracing=False)

        assert tracer.enable_tracing is False
        assert tracer.last_metrics is None

    def test_trace_agent_execution_success(self):
        tracer = AgentTracer(enable_tracing=False)

        with tracer.trace_agent_execution("weather_agent", run_id="run-1", inputs={"city": "Oslo"}) as ctx:
            ctx["result"] = "ok"
            ctx["token_usage"] = {"prompt_tokens": 1000, "completion_tokens": 1000, "total_tokens": 2000}

        metrics = tracer.last_metrics
        assert isinstance(metrics, AgentExecutionMetrics)
        assert metrics.agent_name == "weather_agent"
        assert metrics.run_id == "run-1"
        assert metrics.success is True
        assert metrics.duration_seconds >= 0
        assert metrics.cost_usd == pytest.approx(0.00075)

    def test_trace_agent_execution_failure(self):
        tracer = AgentTracer(enable_tracing=False)

        with pytest.raises(RuntimeError):
            with tracer.trace_agent_execution("stripe_agent") as ctx:
                raise RuntimeError("card declined")

        assert ctx["error"] == "card declined"
        assert tracer.last_metrics.success is False
        assert tracer.last_metrics.error_message == "card declined"
        assert tracer.last_metrics.cost_usd is None

    def test_calculate_cost(self):
        assert AgentTracer._calculate_cost({}) == 0.0
        assert AgentTracer._calculate_cost({"prompt_tokens": 2000}) == pytest.approx(0.0003)

    def test_track_tool_call_without_tracing(self):
        AgentTracer(enable_tracing=False).track_tool_call("get_weather", True, 12.5)

    def test_get_tracer_is_singleton(self, quiet_tracer):
        assert get_tracer() is quiet_tracer
        assert get_tracer() is get_tracer()


class TestUsageToDict:

    def test_none(self):
        assert usage_to_dict(None) == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def test_input_output_names(self):
        usage = SimpleNamespace(input_tokens=10, output_tokens=5, total_tokens=15)

        assert usage_to_dict(usage) == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}

    def test_dict_usage(self):
        usage = {"prompt_tokens": 2, "completion_tokens": 1}

        assert usage_to_dict(usage) == {"prompt_tokens": 2, "completion_tokens": 1, "total_tokens": 3}

    def test_request_response_names(self):
        usage = SimpleNamespace(request_tokens=7, response_tokens=3, total_tokens=None)

        assert usage_to_dict(usage) == {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 10}

