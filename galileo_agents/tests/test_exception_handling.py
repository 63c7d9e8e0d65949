"""
Tests for Exception Handling

This module tests the custom exception handlers in the application, both
directly and through the routes that raise them.
"""

import json

import httpx
import pytest
from pydantic_ai import Agent
from pydantic_ai.models.function import FunctionModel

from galileo_agents.app import main
from galileo_agents.app.core.agents.registry import agent_registry
from galileo_agents.app.core.exceptions import (
    AgentExecutionError,
    ConfigurationError,
    StripeToolError,
    ToolExecutionError,
    WeatherServiceError,
    WorkflowError,
)
from galileo_agents.app.core.graph import nodes
from galileo_agents.tests.fixtures.agents import text_agent
from galileo_agents.tests.fixtures.open_meteo import make_weather_client, open_meteo_handler


def _body(response) -> dict:
    return json.loads(response.body)


class TestExceptionHandlers:
    """Each handler maps its exception to a status and a JSON body."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "handler, exc, status, retry",
        [
            (main.weather_service_exception_handler, WeatherServiceError("timeout"), 502, True),
            (main.stripe_exception_handler, StripeToolError("card declined"), 502, False),
            (main.tool_execution_exception_handler, ToolExecutionError("boom"), 500, True),
            (main.agent_execution_exception_handler, AgentExecutionError("boom"), 500, True),
            (main.workflow_exception_handler, WorkflowError("boom"), 500, True),
            (main.configuration_exception_handler, ConfigurationError("STRIPE_SECRET_KEY is not set"), 500, False),
            (main.validation_exception_handler, ValueError("bad"), 400, False),
        ],
    )
    async def test_handler_response(self, handler, exc, status, retry):
        response = await handler(None, exc)

        assert response.status_code == status
        body = _body(response)
        assert body["detail"] == str(exc)
        assert body["type"] == type(exc).__name__
        assert body["retry"] is retry

    @pytest.mark.asyncio
    async def test_global_handler_hides_detail(self, monkeypatch):
        monkeypatch.setattr(main.settings, "debug", False)

        response = await main.global_exception_handler(None, RuntimeError("secret internals"))

        body = _body(response)
        assert response.status_code == 500
        assert "secret internals" not in body["detail"]
        assert body["type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_global_handler_debug_detail(self, monkeypatch):
        monkeypatch.setattr(main.settings, "debug", True)

        response = await main.global_exception_handler(None, RuntimeError("secret internals"))

        assert _body(response)["detail"] == "secret internals"


class TestRouteErrors:
    """Errors raised inside routes reach the client with the right status."""

    @pytest.fixture
    def planning_agent(self, monkeypatch):
        monkeypatch.setitem(agent_registry._agents, "weather_agent", text_agent())

    def _open_meteo(self, monkeypatch, handler):
        client = make_weather_client(handler)
        monkeypatch.setattr(nodes, "OpenMeteoClient", lambda: client)

    def test_unknown_city_is_404(self, test_client, monkeypatch, planning_agent):
        self._open_meteo(monkeypatch, open_meteo_handler(geocode={"results": []}))

        response = test_client.post("/workflows/weather-workflow/run", json={"city": "Atlantis"})

        assert response.status_code == 404
        assert response.json()["type"] == "LocationNotFoundError"
        assert response.json()["detail"] == "Location 'Atlantis' not found"

    def test_weather_upstream_failure_is_502(self, test_client, monkeypatch, planning_agent):
        def handler(request):
            return httpx.Response(503, json={"reason": "maintenance"})

        self._open_meteo(monkeypatch, handler)

        response = test_client.post("/workflows/weather-workflow/run", json={"city": "London"})

        assert response.status_code == 502
        assert response.json()["retry"] is True

    def test_malformed_weather_response_is_502(self, test_client, monkeypatch, planning_agent):
        self._open_meteo(monkeypatch, open_meteo_handler(current={"current": {}}))

        response = test_client.post("/workflows/weather-workflow/run", json={"city": "London"})

        assert response.status_code == 502
        assert response.json()["type"] == "WeatherServiceError"

    def test_invalid_workflow_input_is_422(self, test_client):
        response = test_client.post("/workflows/weather-workflow/run", json={"town": "London"})

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "ValidationError"
        assert body["detail"][0]["loc"] == ["city"]

    def test_agent_failure_is_500(self, test_client, monkeypatch):
        def broken(messages, info):
            raise RuntimeError("provider outage")

        monkeypatch.setitem(agent_registry._agents, "weather_agent", Agent(FunctionModel(broken)))

        response = test_client.post("/agents/weather_agent/chat", json={"message": "hi"})

        assert response.status_code == 500
        body = response.json()
        assert body["type"] == "AgentExecutionError"
        assert "provider outage" in body["detail"]

    def test_not_found_route(self, test_client):
        assert test_client.get("/nonexistent-endpoint").status_code == 404

    def test_method_not_allowed(self, test_client):
        assert test_client.put("/health").status_code == 405
