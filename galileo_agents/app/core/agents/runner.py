"""
Agent runs: chat with conversation memory, and streamed text for workflows.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.agents.registry import AgentRegistry, agent_registry
from galileo_agents.app.core.exceptions import AgentExecutionError, AgentNotFoundError
from galileo_agents.app.core.memory.store import ConversationMemory
from galileo_agents.app.core.observability.tracer import get_tracer, usage_to_dict
from galileo_agents.app.models.domain import ChatReply
from galileo_agents.app.utils.helpers import truncate_text


logger = logging.getLogger(__name__)
settings = get_settings()

ChunkCallback = Callable[[str], Optional[Awaitable[None]]]

conversation_memory = ConversationMemory(
    max_threads=settings.memory_max_threads,
    max_messages=settings.memory_max_messages,
)


async def chat(
    agent_name: str,
    message: str,
    thread_id: Optional[str] = None,
    *,
    registry: AgentRegistry = agent_registry,
    memory: ConversationMemory = conversation_memory,
) -> ChatReply:
    """
    Send one message to an agent.

    Messages on the same thread share history; a new thread id is generated
    when none is given.

    Raises:
        AgentNotFoundError: No agent is registered under ``agent_name``
        AgentExecutionError: The agent run failed
    """
    agent = registry.require(agent_name)
    thread_id = thread_id or uuid4().hex
    history = memory.get_history(thread_id)

    with get_tracer().trace_agent_execution(
        agent_name,
        run_id=thread_id,
        inputs={"message": truncate_text(message, 200), "history_length": len(history)},
    ) as ctx:
        try:
            result = await agent.run(message, message_history=history or None)
        except Exception as exc:
            logger.error("Agent '%s' failed: %s", agent_name, exc)
            raise AgentExecutionError(f"Agent '{agent_name}' failed: {exc}") from exc

        usage = usage_to_dict(result.usage())
        ctx["token_usage"] = usage
        ctx["result"] = result.output

    memory.append(thread_id, result.new_messages())
    return ChatReply(
        agent=agent_name,
        thread_id=thread_id,
        reply=str(result.output),
        usage=usage,
    )


async def stream_agent_text(
    agent_name: str,
    prompt: str,
    *,
    registry: AgentRegistry = agent_registry,
    on_chunk: Optional[ChunkCallback] = None,
    run_id: Optional[str] = None,
) -> tuple[str, dict[str, int]]:
    """
    Run an agent with streaming and collect the full text.

    Each text delta is passed to ``on_chunk`` as it arrives.

    Returns:
        The complete text and its token usage
    """
    agent = registry.get(agent_name)
    if agent is None:
        raise AgentNotFoundError(f"Agent '{agent_name}' not found")

    chunks: list[str] = []
    with get_tracer().trace_agent_execution(
        agent_name,
        run_id=run_id,
        inputs={"prompt": truncate_text(prompt, 200), "streaming": True},
    ) as ctx:
        async with agent.run_stream(prompt) as result:
            async for delta in result.stream_text(delta=True):
                chunks.append(delta)
                if on_chunk is not None:
                    maybe_awaitable = on_chunk(delta)
                    if maybe_awaitable is not None:
                        await maybe_awaitable
            usage = usage_to_dict(result.usage())

        text = "".join(chunks)
        ctx["token_usage"] = usage
        ctx["result"] = text

    return text, usage


def agent_summary(name: str, registry: AgentRegistry = agent_registry) -> dict[str, Any]:
    """Metadata of one agent as a plain dict."""
    metadata = registry.get_metadata(name)
    if metadata is None:
        raise AgentNotFoundError(f"Agent '{name}' not found")
    return metadata.model_dump()


__all__ = ["chat", "stream_agent_text", "agent_summary", "conversation_memory"]
