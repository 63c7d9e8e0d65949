"""
Workflow API Routes

List, run and visualise the registered workflows.
"""

from typing import Any, Dict, List

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from galileo_agents.app.core.graph.executor import (
    get_workflow,
    get_workflow_mermaid,
    list_workflows,
    run_workflow,
)
from galileo_agents.app.models.domain import WorkflowInfo, WorkflowRunResult


router = APIRouter(
    prefix="/workflows",
    tags=["workflows"]
)


@router.get("/", response_model=List[WorkflowInfo])
async def get_workflows():
    """List registered workflows with their steps and input schema."""
    return list_workflows()


@router.get("/{workflow_id}", response_model=WorkflowInfo)
async def get_workflow_info(workflow_id: str):
    return get_workflow(workflow_id).info()


@router.post("/{workflow_id}/run", response_model=WorkflowRunResult)
async def run(workflow_id: str, inputs: Dict[str, Any]):
    """
    Run a workflow synchronously and return its output.

    Example:
        ```
        POST /workflows/weather-workflow/run
        {"city": "London"}

        Response:
        {
            "workflow_id": "weather-workflow",
            "run_id": "4f1c...",
            "output": {"activities": "1. ..."},
            "completed_steps": ["fetch-weather", "plan-activities"],
            ...
        }
        ```
    """
    return await run_workflow(workflow_id, inputs)


@router.get("/{workflow_id}/mermaid", response_class=PlainTextResponse)
async def mermaid(workflow_id: str):
    """Mermaid diagram of the workflow graph."""
    return get_workflow_mermaid(workflow_id)
