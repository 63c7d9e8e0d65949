"""
Observability: Galileo span logging, run tracing context, and logfire agent tracing.
"""

from galileo_agents.app.core.observability.galileo_logger import (
    flush_galileo,
    graceful_flush,
    initialize_galileo,
    log_operation,
    log_with_flush,
)
from galileo_agents.app.core.observability.tracer import (
    AgentTracer,
    get_tracer,
)
from galileo_agents.app.core.observability.tracing_context import (
    RuntimeContext,
    TracingContextManager,
    tracing_context_manager,
)

__all__ = [
    "AgentTracer",
    "get_tracer",
    "flush_galileo",
    "graceful_flush",
    "initialize_galileo",
    "log_operation",
    "log_with_flush",
    "RuntimeContext",
    "TracingContextManager",
    "tracing_context_manager",
]
