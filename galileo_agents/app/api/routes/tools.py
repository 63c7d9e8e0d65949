"""
Tools API Routes

This module provides endpoints for tool discovery and direct execution.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from galileo_agents.app.core.tools import manager


router = APIRouter(
    prefix="/tools",
    tags=["tools"]
)


class ToolExecuteRequest(BaseModel):
    """Request to execute a tool."""
    tool_name: str = Field(description="Name of the tool to execute")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


class ToolExecuteResponse(BaseModel):
    """Response from tool execution."""
    success: bool
    output: Any
    error: Optional[str] = None
    execution_time: float
    metadata: Dict[str, Any]


class ToolInfo(BaseModel):
    """Information about a tool."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    tool_schema: Dict[str, Any] = Field(alias="schema")


@router.get("/list", response_model=List[str])
async def list_tools():
    """
    List all available tools.

    Example:
        ```
        GET /tools/list

        Response:
        ["get_weather", "create_payment_link", "create_customer", ...]
        ```
    """
    return manager.list_tools()


@router.get("/schemas", response_model=List[ToolInfo])
async def get_tool_schemas():
    """
    Get schemas for all available tools.

    Example:
        ```
        GET /tools/schemas

        Response:
        [
            {
                "name": "get_weather",
                "description": "Get current weather for a location",
                "schema": {...}
            }
        ]
        ```
    """
    tools = []
    for tool_name in manager.list_tools():
        info = manager.get_tool_info(tool_name)
        if info:
            tools.append(ToolInfo(**info))
    return tools


@router.get("/openai-functions", response_model=List[Dict[str, Any]])
async def get_openai_functions():
    """Get all permitted tools in OpenAI function calling format."""
    return manager.get_schemas()


@router.get("/{tool_name}", response_model=ToolInfo)
async def get_tool_info(tool_name: str):
    """
    Get information about a specific tool.

    Raises:
        404: If tool not found
    """
    info = manager.get_tool_info(tool_name)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Tool '{tool_name}' not found")

    return ToolInfo(**info)


@router.post("/execute", response_model=ToolExecuteResponse)
async def execute_tool(request: ToolExecuteRequest):
    """
    Execute a tool with given parameters.

    Tool failures (bad input, upstream errors) come back as
    ``success: false`` with the error message, not as an HTTP error.

    Example:
        ```
        POST /tools/execute
        {
            "tool_name": "get_weather",
            "parameters": {"location": "London"}
        }

        Response:
        {
            "success": true,
            "output": {"location": "London", "temperature": 14.2, ...},
            "error": null,
            "execution_time": 0.41,
            "metadata": {"tool": "get_weather"}
        }
        ```
    """
    result = await manager.execute(request.tool_name, **request.parameters)

    return ToolExecuteResponse(
        success=result.success,
        output=result.output,
        error=result.error,
        execution_time=result.execution_time,
        metadata=result.metadata
    )
