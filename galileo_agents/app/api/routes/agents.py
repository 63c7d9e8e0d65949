"""Agent discovery and chat endpoints."""

from fastapi import APIRouter, HTTPException

from galileo_agents.app.core.agents.registry import agent_registry
from galileo_agents.app.core.agents.runner import agent_summary, chat, conversation_memory
from galileo_agents.app.models.domain import ChatReply
from galileo_agents.app.models.requests import ChatRequest

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("/")
async def list_agents():
    agents = []
    for metadata in agent_registry.list_metadata():
        agents.append({
            "agent_id": metadata.name,
            "metadata": metadata,
        })
    return {"agents": agents}


@router.get("/{agent_id}")
async def get_agent(agent_id: str):
    """Metadata of one agent; unknown ids answer 404 through the AgentNotFoundError handler."""
    return {"agent_id": agent_id, "metadata": agent_summary(agent_id)}


@router.post("/{agent_id}/chat", response_model=ChatReply)
async def chat_with_agent(agent_id: str, payload: ChatRequest):
    """
    Send a message to an agent.

    Reuse the returned ``thread_id`` to continue the conversation.
    """
    return await chat(agent_id, payload.message, payload.thread_id)


@router.delete("/threads/{thread_id}")
async def delete_thread(thread_id: str):
    """Forget a conversation thread."""
    if not conversation_memory.delete(thread_id):
        raise HTTPException(status_code=404, detail=f"Thread '{thread_id}' not found")
    return {"thread_id": thread_id, "deleted": True}
