"""

Business Agents Module - the weather assistant and the Stripe business agent,
with the tool functions they call.

Tool functions delegate to the tool manager, so agent calls go through the
same permission, rate-limit, timeout and audit guardrails as the HTTP API.
A failed tool result is handed back to the model as a retry prompt carrying
the error, letting it correct its arguments or ask the user.

"""

from typing import Any, Literal, Optional

from pydantic_ai import Agent, ModelRetry

from galileo_agents.app.config import get_settings
from galileo_agents.app.models.domain import AgentMetadata
from galileo_agents.app.utils.helpers import load_prompt
from galileo_agents.app.core.tools import manager
from galileo_agents.app.core.agents.registry import agent_registry


# Get application settings
settings = get_settings()


async def _run_tool(tool_name: str, **arguments: Any) -> Any:
    result = await manager.execute(
        tool_name,
        **{key: value for key, value in arguments.items() if value is not None},
    )
    if not result.success:
        raise ModelRetry(result.error or f"Tool '{tool_name}' failed")
    return result.output


# ----- Tool functions -----

async def get_weather(location: str) -> dict[str, Any]:
    """Get current weather for a location.

    Args:
        location: City name
    """
    return await _run_tool("get_weather", location=location)


async def create_payment_link(
    price: str,
    product_name: str,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> dict[str, Any]:
    """Create a Stripe payment link for products or services.

    Args:
        price: Price ID (price_...) or amount in cents
        product_name: Name of the product or service
        success_url: URL to redirect after successful payment
        cancel_url: URL to redirect after cancelled payment
    """
    return await _run_tool(
        "create_payment_link",
        price=price,
        product_name=product_name,
        success_url=success_url,
        cancel_url=cancel_url,
    )


async def create_customer(
    email: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
) -> dict[str, Any]:
    """Create a new Stripe customer.

    Args:
        email: Customer email address
        name: Customer full name
        phone: Customer phone number
    """
    return await _run_tool("create_customer", email=email, name=name, phone=phone)


async def list_products(limit: int = 10, active: bool = True) -> dict[str, Any]:
    """List products in the Stripe account.

    Args:
        limit: Maximum number of products to return (1-100)
        active: Only return active products
    """
    return await _run_tool("list_products", limit=limit, active=active)


async def create_subscription(customer_id: str, price_id: str) -> dict[str, Any]:
    """Subscribe a Stripe customer to a recurring price.

    Args:
        customer_id: Stripe customer ID (cus_...)
        price_id: Recurring price ID (price_...)
    """
    return await _run_tool("create_subscription", customer_id=customer_id, price_id=price_id)


async def cancel_subscription(subscription_id: str) -> dict[str, Any]:
    """Cancel an active Stripe subscription.

    Args:
        subscription_id: Subscription ID (sub_...)
    """
    return await _run_tool("cancel_subscription", subscription_id=subscription_id)


async def create_refund(
    payment_intent: str,
    amount: Optional[int] = None,
    reason: Optional[Literal["duplicate", "fraudulent", "requested_by_customer"]] = None,
) -> dict[str, Any]:
    """Refund a payment, fully or partially.

    Args:
        payment_intent: Payment intent ID (pi_...)
        amount: Amount to refund in cents; the full amount when omitted
        reason: Why the payment is refunded
    """
    return await _run_tool(
        "create_refund",
        payment_intent=payment_intent,
        amount=amount,
        reason=reason,
    )


WEATHER_AGENT_TOOLS = [get_weather]

STRIPE_AGENT_TOOLS = [
    get_weather,
    create_payment_link,
    create_customer,
    list_products,
    create_subscription,
    cancel_subscription,
    create_refund,
]


def _agent_model(agent_name: str) -> str:
    """Resolve per-agent model overrides from settings."""
    return settings.get_agent_model(agent_name)


def _meta(name: str, role: str, description: str, tools: list) -> AgentMetadata:
    return AgentMetadata(
        name=name,
        role=role,
        description=description,
        model=_agent_model(name),
        tools=[tool.__name__ for tool in tools],
    )


# Weather Agent
# Answers weather questions and plans activities in the weather workflow.
weather_agent = Agent(
    model=_agent_model("weather_agent"),
    name="weather_agent",
    instructions=load_prompt("weather_agent.txt"),
    tools=WEATHER_AGENT_TOOLS,
    retries=2,
    defer_model_check=True,
)
agent_registry.register(
    "weather_agent",
    weather_agent,
    _meta(
        "weather_agent",
        "assistant",
        "Provides current weather and suggests activities for it",
        WEATHER_AGENT_TOOLS,
    ),
)


# Stripe Business Agent
# Weather information plus Stripe payment operations.
stripe_agent = Agent(
    model=_agent_model("stripe_agent"),
    name="Stripe Business Agent",
    instructions=load_prompt("stripe_agent.txt"),
    tools=STRIPE_AGENT_TOOLS,
    retries=2,
    defer_model_check=True,
)
agent_registry.register(
    "stripe_agent",
    stripe_agent,
    _meta(
        "stripe_agent",
        "business",
        "Stripe Business Agent: payment links, customers, products, subscriptions and refunds, plus weather",
        STRIPE_AGENT_TOOLS,
    ),
)


__all__ = [
    "weather_agent",
    "stripe_agent",
    "WEATHER_AGENT_TOOLS",
    "STRIPE_AGENT_TOOLS",
]
