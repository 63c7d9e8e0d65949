"""Agents: registry, the weather and Stripe business agents, and run helpers."""

from galileo_agents.app.core.agents.registry import AgentRegistry, agent_registry
from galileo_agents.app.core.agents.business_agents import stripe_agent, weather_agent

__all__ = ["AgentRegistry", "agent_registry", "stripe_agent", "weather_agent"]
