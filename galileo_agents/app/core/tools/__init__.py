"""
Tool System

Weather and Stripe tools, the registry that holds them, and the manager
agents and the HTTP API execute them through.
"""

from typing import Optional

from .base import Tool, ToolRegistry, ToolResult, ToolError
from .weather import GetWeatherTool
from .stripe_tools import (
    STRIPE_TOOL_CLASSES,
    CancelSubscriptionTool,
    CreateCustomerTool,
    CreatePaymentLinkTool,
    CreateRefundTool,
    CreateSubscriptionTool,
    ListProductsTool,
)
from .manager import ToolManager
from galileo_agents.app.config import get_settings
from galileo_agents.app.services.stripe_toolkit import StripeToolkit
from galileo_agents.app.services.weather import OpenMeteoClient


def build_registry(
    weather_client: Optional[OpenMeteoClient] = None,
    stripe_toolkit: Optional[StripeToolkit] = None,
) -> ToolRegistry:
    """Registry with the weather tool and one tool per Stripe action."""
    tool_registry = ToolRegistry()
    tool_registry.register(GetWeatherTool(weather_client))
    for tool_cls in STRIPE_TOOL_CLASSES:
        tool_registry.register(tool_cls(stripe_toolkit))
    return tool_registry


# Create global tool registry
registry = build_registry()

_settings = get_settings()
manager = ToolManager(
    registry_ref=registry,
    rate_limit_per_minute=_settings.tool_rate_limit_per_minute,
    execution_timeout=_settings.tool_execution_timeout,
    audit_logging=_settings.enable_tool_audit_log,
)

__all__ = [
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "ToolError",
    "GetWeatherTool",
    "CreatePaymentLinkTool",
    "CreateCustomerTool",
    "ListProductsTool",
    "CreateSubscriptionTool",
    "CancelSubscriptionTool",
    "CreateRefundTool",
    "ToolManager",
    "build_registry",
    "manager",
    "registry",
]
