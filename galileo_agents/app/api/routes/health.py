"""Health check endpoints."""

from fastapi import APIRouter

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.agents.registry import agent_registry
from galileo_agents.app.core.graph.executor import WORKFLOWS
from galileo_agents.app.core.observability.galileo_logger import is_initialized
from galileo_agents.app.core.tools import manager

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


@router.get("/health")
async def health():
    """Liveness plus a summary of what is registered and whether Galileo is active."""
    settings = get_settings()
    return {
        "status": "healthy",
        "galileo": {
            "enabled": settings.galileo_enabled,
            "initialized": is_initialized(),
            "project": settings.galileo_project_name,
            "log_stream": settings.galileo_log_stream_name,
        },
        "agents": agent_registry.list_agents(),
        "tools": manager.list_tools(),
        "workflows": list(WORKFLOWS),
    }
