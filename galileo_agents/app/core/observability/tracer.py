"""
Local run tracing with logfire.

Galileo receives the tool and workflow spans; this module covers the agent
runs themselves: duration, token usage and an estimated cost per run,
reported to logfire and the standard logger.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Optional

import logfire
from pydantic import BaseModel

from galileo_agents.app.core.observability.tracing_context import usage_counts


logger = logging.getLogger(__name__)

# USD per 1K tokens for the default model (gpt-4o-mini)
PROMPT_COST_PER_1K = 0.00015
COMPLETION_COST_PER_1K = 0.0006


class AgentExecutionMetrics(BaseModel):
    """Metrics captured during an agent run."""

    agent_name: str
    run_id: Optional[str] = None
    duration_seconds: float
    token_usage: Optional[dict[str, int]] = None
    cost_usd: Optional[float] = None
    success: bool
    error_message: Optional[str] = None
    timestamp: float


class AgentTracer:
    """
    Tracing and metrics for agent runs.

    Features:
    - logfire spans per agent run
    - Token usage and cost tracking
    - The most recent metrics kept for inspection
    """

    def __init__(self, enable_tracing: bool = True, token: Optional[str] = None):
        """
        Initialize the tracer.

        Args:
            enable_tracing: Whether to emit logfire spans (off in tests)
            token: Logfire write token; without one spans stay local
        """
        self.enable_tracing = enable_tracing
        self.last_metrics: Optional[AgentExecutionMetrics] = None

        if self.enable_tracing:
            try:
                logfire.configure(token=token, send_to_logfire="if-token-present")
                logger.info("Logfire tracing initialized")
            except Exception as e:
                logger.warning(f"Failed to initialize logfire: {e}")
                self.enable_tracing = False

    @contextmanager
    def trace_agent_execution(
        self,
        agent_name: str,
        run_id: Optional[str] = None,
        inputs: Optional[dict[str, Any]] = None,
    ):
        """
        Context manager for tracing one agent run.

        Yields:
            A dict where the caller stores ``result`` and ``token_usage``

        Example:
            with tracer.trace_agent_execution("weather_agent", run_id="abc") as ctx:
                result = await agent.run(prompt)
                ctx["token_usage"] = usage_to_dict(result.usage())
        """
        start_time = time.time()
        execution_context: dict[str, Any] = {
            "result": None,
            "token_usage": None,
            "error": None,
        }

        span = None
        if self.enable_tracing:
            span = logfire.span(
                f"agent_execution:{agent_name}",
                agent_name=agent_name,
                run_id=run_id,
                inputs=inputs,
            )
            span.__enter__()

        success = True
        error_msg = None
        try:
            yield execution_context
        except Exception as e:
            success = False
            error_msg = str(e)
            execution_context["error"] = error_msg

            if self.enable_tracing:
                logfire.error(
                    f"Agent execution failed: {agent_name}",
                    agent_name=agent_name,
                    run_id=run_id,
                    error=error_msg,
                )
            raise
        finally:
            duration = time.time() - start_time
            token_usage = execution_context.get("token_usage")
            cost = self._calculate_cost(token_usage) if token_usage else None

            self.last_metrics = AgentExecutionMetrics(
                agent_name=agent_name,
                run_id=run_id,
                duration_seconds=duration,
                token_usage=token_usage,
                cost_usd=cost,
                success=success,
                error_message=error_msg,
                timestamp=start_time,
            )

            if span is not None:
                logfire.info(
                    f"Agent execution completed: {agent_name}",
                    agent_name=agent_name,
                    run_id=run_id,
                    duration_seconds=duration,
                    token_usage=token_usage,
                    cost_usd=cost,
                    success=success,
                )
                span.__exit__(None, None, None)

            logger.info(
                f"Agent '{agent_name}' executed in {duration:.2f}s "
                f"(success={success}, tokens={token_usage})"
            )

    def track_tool_call(self, tool_name: str, success: bool, duration_ms: float) -> None:
        """Record one tool execution."""
        if self.enable_tracing:
            logfire.info(
                f"Tool call: {tool_name}",
                tool_name=tool_name,
                success=success,
                duration_ms=duration_ms,
            )

    @staticmethod
    def _calculate_cost(token_usage: dict[str, int]) -> float:
        if not token_usage:
            return 0.0

        prompt_tokens = token_usage.get("prompt_tokens", 0)
        completion_tokens = token_usage.get("completion_tokens", 0)

        prompt_cost = (prompt_tokens / 1000) * PROMPT_COST_PER_1K
        completion_cost = (completion_tokens / 1000) * COMPLETION_COST_PER_1K
        return prompt_cost + completion_cost


def usage_to_dict(usage: Any) -> dict[str, int]:
    """
    Normalise a pydantic-ai usage object to prompt/completion/total counts.

    Missing counts become 0; field names are resolved by ``usage_counts``.
    """
    input_tokens, output_tokens, total_tokens = usage_counts(usage)
    prompt = input_tokens or 0
    completion = output_tokens or 0
    total = total_tokens or prompt + completion
    return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": total}


_tracer: Optional[AgentTracer] = None


def get_tracer() -> AgentTracer:
    """Get or create the global tracer instance."""
    global _tracer
    if _tracer is None:
        # Import here to avoid circular dependency
        from galileo_agents.app.config import get_settings
        settings = get_settings()
        _tracer = AgentTracer(
            enable_tracing=settings.enable_tracing,
            token=settings.logfire_token,
        )
    return _tracer
