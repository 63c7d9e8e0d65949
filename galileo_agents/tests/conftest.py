"""
Pytest configuration and shared fixtures

This module provides reusable fixtures and configuration for all tests.
Galileo export and logfire tracing are switched off before the application
modules are imported, so no test talks to an external service.
"""

import os

os.environ["GALILEO_ENABLED"] = "false"
os.environ["ENABLE_TRACING"] = "false"
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")

import pytest
from fastapi.testclient import TestClient

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.observability.tracing_context import (
    RuntimeContext,
    TracingContextManager,
)
from galileo_agents.app.services.stripe_toolkit import StripeToolkit
from galileo_agents.app.services.weather import OpenMeteoClient
from galileo_agents.tests.fixtures.fakes import FakeGalileoLogger, FakeStripeAPI
from galileo_agents.tests.fixtures.open_meteo import make_weather_client, open_meteo_handler


# ===== Settings =====

@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings around each test so env changes never leak."""
    get_settings(reload=True)
    yield
    get_settings(reload=True)


# ===== Open-Meteo Fixtures =====

@pytest.fixture
def weather_requests() -> list:
    return []


@pytest.fixture
def weather_client(weather_requests) -> OpenMeteoClient:
    """Open-Meteo client answering for London from a mock transport."""
    return make_weather_client(open_meteo_handler(requests=weather_requests))


# ===== Stripe Fixtures =====

@pytest.fixture
def stripe_api() -> FakeStripeAPI:
    return FakeStripeAPI()


@pytest.fixture
def stripe_toolkit(stripe_api) -> StripeToolkit:
    """Toolkit with every action enabled, backed by the fake Stripe API."""
    return StripeToolkit(
        secret_key="sk_test_123",
        api=stripe_api,
        default_success_url="https://shop.test/success",
        default_cancel_url="https://shop.test/cancel",
    )


# ===== Tracing Fixtures =====

@pytest.fixture
def galileo_logger() -> FakeGalileoLogger:
    return FakeGalileoLogger()


@pytest.fixture
def tracing(galileo_logger) -> TracingContextManager:
    """Tracing manager that mirrors spans to the fake Galileo logger."""
    return TracingContextManager(logger_provider=lambda: galileo_logger)


@pytest.fixture
def local_tracing() -> TracingContextManager:
    """Tracing manager with no Galileo logger (spans tracked locally)."""
    return TracingContextManager(logger_provider=lambda: None)


@pytest.fixture
def runtime_context() -> RuntimeContext:
    return RuntimeContext()


# ===== API Fixtures =====

@pytest.fixture
def test_client() -> TestClient:
    from galileo_agents.app.main import app

    return TestClient(app)
