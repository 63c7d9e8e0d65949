"""
Custom Exceptions for the Galileo Agents Application

This module defines custom exceptions used throughout the application
for better error handling and debugging.
"""


class ConfigurationError(Exception):
    """Raised when a required setting or environment variable is missing."""
    pass


class AgentExecutionError(Exception):
    """Raised when an agent fails to execute properly."""
    pass


class AgentNotFoundError(AgentExecutionError):
    """Raised when no agent is registered under the requested name."""
    pass


class WorkflowError(Exception):
    """Raised when a workflow step cannot run or fails."""
    pass


class WorkflowNotFoundError(WorkflowError):
    """Raised when no workflow is registered under the requested id."""
    pass


class ToolExecutionError(Exception):
    """Raised when a tool execution fails."""
    pass


class WeatherServiceError(ToolExecutionError):
    """Raised when the Open-Meteo geocoding or forecast call fails."""
    pass


class LocationNotFoundError(WeatherServiceError):
    """Raised when geocoding returns no match for a city."""
    pass


class StripeToolError(ToolExecutionError):
    """Raised when a Stripe API call fails."""
    pass


class ToolkitActionUnavailableError(StripeToolError):
    """Raised when a Stripe toolkit action is not enabled."""
    pass


class TracingError(Exception):
    """Base exception for tracing context errors."""
    pass


class SpanClosedError(TracingError):
    """Raised when a span handle is used after it was closed."""
    pass
