"""
Tool Manager

Guardrails around the tool registry:
- Permission checks (allowed tool names)
- Per-minute rate limiting
- Execution timeouts
- Audit logging
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Set

from galileo_agents.app.core.observability.tracer import get_tracer
from galileo_agents.app.core.tools.base import ToolRegistry, ToolResult

logger = logging.getLogger(__name__)


@dataclass
class RateLimiter:
    """Sliding-window rate limiter (per manager instance)."""

    max_calls_per_minute: int
    timestamps: list[float] = field(default_factory=list)

    def allow(self) -> bool:
        now = time.monotonic()
        window_start = now - 60
        self.timestamps = [t for t in self.timestamps if t >= window_start]
        if len(self.timestamps) >= self.max_calls_per_minute:
            return False
        self.timestamps.append(now)
        return True


class ToolManager:
    """Wraps tool registry execution with guardrails. Failed calls are not retried."""

    def __init__(
        self,
        *,
        registry_ref: ToolRegistry,
        allowed_tools: Optional[Iterable[str]] = None,
        rate_limit_per_minute: int = 60,
        execution_timeout: float = 30.0,
        audit_logging: bool = True,
    ) -> None:
        self.registry = registry_ref
        self.allowed_tools: Optional[Set[str]] = set(allowed_tools) if allowed_tools else None
        self.rate_limiter = RateLimiter(rate_limit_per_minute)
        self.execution_timeout = execution_timeout
        self.audit_logging = audit_logging

    def is_allowed(self, tool_name: str) -> bool:
        return self.allowed_tools is None or tool_name in self.allowed_tools

    def list_tools(self) -> list[str]:
        return [t for t in self.registry.list_tools() if self.is_allowed(t)]

    def get_tool_info(self, tool_name: str) -> Optional[dict[str, Any]]:
        tool = self.registry.get(tool_name)
        if not tool or not self.is_allowed(tool_name):
            return None
        return {
            "name": tool.name,
            "description": tool.description,
            "schema": tool.get_schema().model_dump(),
        }

    def get_schemas(self) -> list[dict[str, Any]]:
        """Schemas of the permitted tools in OpenAI function calling format."""
        return [
            self.registry.get(name).get_schema().to_openai_format()
            for name in self.list_tools()
        ]

    async def execute(self, tool_name: str, **kwargs) -> ToolResult:
        if not self.is_allowed(tool_name):
            return ToolResult(
                success=False,
                output=None,
                error=f"Tool '{tool_name}' is not permitted",
                execution_time=0.0,
                metadata={"tool": tool_name},
            )

        if not self.rate_limiter.allow():
            return ToolResult(
                success=False,
                output=None,
                error="Rate limit exceeded for tools",
                execution_time=0.0,
                metadata={"tool": tool_name},
            )

        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                self.registry.execute(tool_name, **kwargs),
                timeout=self.execution_timeout,
            )
        except asyncio.TimeoutError:
            result = ToolResult(
                success=False,
                output=None,
                error=f"Tool execution timed out after {self.execution_timeout:g}s",
                execution_time=time.monotonic() - start,
                metadata={"tool": tool_name},
            )

        get_tracer().track_tool_call(tool_name, result.success, result.execution_time * 1000)
        if self.audit_logging:
            self._audit(tool_name, result)
        return result

    def _audit(self, tool_name: str, result: ToolResult) -> None:
        logger.info(
            "Tool executed",
            extra={
                "tool": tool_name,
                "success": result.success,
                "error": result.error,
                "tool_metadata": result.metadata,
            },
        )


__all__ = ["RateLimiter", "ToolManager"]
