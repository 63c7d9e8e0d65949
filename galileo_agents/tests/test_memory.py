from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from galileo_agents.app.core.memory.store import ConversationMemory


def _turn(text: str) -> list:
    return [
        ModelRequest(parts=[UserPromptPart(content=text)]),
        ModelResponse(parts=[TextPart(content=f"re: {text}")]),
    ]


def _tool_turn(text: str) -> list:
    return [
        ModelRequest(parts=[UserPromptPart(content=text)]),
        ModelResponse(parts=[ToolCallPart(tool_name="get_weather", args={"location": "Oslo"})]),
        ModelRequest(parts=[ToolReturnPart(tool_name="get_weather", content={"temperature": 3})]),
        ModelResponse(parts=[TextPart(content="It is cold")]),
    ]


def test_unknown_thread_is_empty():
    assert ConversationMemory().get_history("nope") == []


def test_append_and_get():
    memory = ConversationMemory()
    memory.append("t1", _turn("hello"))
    memory.append("t1", _turn("again"))

    history = memory.get_history("t1")

    assert len(history) == 4
    assert history[0].parts[0].content == "hello"


def test_history_is_a_copy():
    memory = ConversationMemory()
    memory.append("t1", _turn("hello"))

    memory.get_history("t1").clear()

    assert len(memory.get_history("t1")) == 2


def test_trim_keeps_whole_turns():
    memory = ConversationMemory(max_messages=5)
    memory.append("t1", _tool_turn("first"))
    memory.append("t1", _tool_turn("second"))

    history = memory.get_history("t1")

    # The last 5 messages start mid-turn; the partial turn is dropped
    assert len(history) == 4
    assert isinstance(history[0], ModelRequest)
    assert history[0].parts[0].content == "second"


def test_lru_eviction():
    memory = ConversationMemory(max_threads=2)
    memory.append("a", _turn("a"))
    memory.append("b", _turn("b"))
    memory.get_history("a")

    memory.append("c", _turn("c"))

    assert memory.list_threads() == ["a", "c"]
    assert memory.eviction_count == 1
    assert memory.thread_count == 2


def test_delete_and_clear():
    memory = ConversationMemory()
    memory.append("t1", _turn("hello"))

    assert memory.delete("t1") is True
    assert memory.delete("t1") is False

    memory.append("t2", _turn("hello"))
    memory.clear()
    assert memory.thread_count == 0
