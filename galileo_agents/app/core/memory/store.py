"""
In-memory conversation store for agent chats.

Each thread keeps the pydantic-ai message history of one conversation so a
follow-up message can be answered in context.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List

from pydantic_ai.messages import ModelMessage, ModelRequest, UserPromptPart


logger = logging.getLogger(__name__)

# Default limits to prevent unbounded memory growth
DEFAULT_MAX_THREADS = 100
DEFAULT_MAX_MESSAGES = 50


def _starts_turn(message: ModelMessage) -> bool:
    return isinstance(message, ModelRequest) and any(
        isinstance(part, UserPromptPart) for part in message.parts
    )


class ConversationMemory:
    """
    Per-thread message history with size limits.

    Args:
        max_threads: Maximum number of threads kept. When exceeded, the least
                     recently used thread is evicted.
        max_messages: Maximum number of messages kept per thread. Older
                      messages are dropped a whole turn at a time, so a
                      history never starts with a tool result.
    """

    def __init__(
        self,
        max_threads: int = DEFAULT_MAX_THREADS,
        max_messages: int = DEFAULT_MAX_MESSAGES,
    ):
        self._threads: "OrderedDict[str, List[ModelMessage]]" = OrderedDict()
        self._max_threads = max_threads
        self._max_messages = max_messages
        self._eviction_count = 0

    def clear(self) -> None:
        self._threads.clear()
        self._eviction_count = 0

    def get_history(self, thread_id: str) -> List[ModelMessage]:
        """Messages of a thread (empty for an unknown thread)."""
        history = self._threads.get(thread_id)
        if history is None:
            return []
        self._threads.move_to_end(thread_id)
        return list(history)

    def append(self, thread_id: str, messages: List[ModelMessage]) -> None:
        """Add the messages of a finished run to a thread."""
        history = self._threads.pop(thread_id, [])
        history.extend(messages)

        if len(history) > self._max_messages:
            history = history[-self._max_messages:]
            while history and not _starts_turn(history[0]):
                history.pop(0)

        while len(self._threads) >= self._max_threads:
            evicted_id, _ = self._threads.popitem(last=False)
            self._eviction_count += 1
            logger.debug(
                "Evicted conversation thread %s (total evictions: %d)",
                evicted_id,
                self._eviction_count,
            )

        self._threads[thread_id] = history

    def delete(self, thread_id: str) -> bool:
        return self._threads.pop(thread_id, None) is not None

    def list_threads(self) -> List[str]:
        return list(self._threads.keys())

    def message_counts(self) -> Dict[str, int]:
        return {thread_id: len(history) for thread_id, history in self._threads.items()}

    @property
    def thread_count(self) -> int:
        return len(self._threads)

    @property
    def eviction_count(self) -> int:
        """Total number of threads evicted due to capacity limits."""
        return self._eviction_count


__all__ = ["ConversationMemory", "DEFAULT_MAX_THREADS", "DEFAULT_MAX_MESSAGES"]
