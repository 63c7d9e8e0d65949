"""Graph module: the weather and tracing-example workflows"""

from galileo_agents.app.core.graph.executor import (
    WORKFLOWS,
    get_workflow,
    get_workflow_mermaid,
    list_workflows,
    run_weather_workflow,
    run_workflow,
)

__all__ = [
    "WORKFLOWS",
    "get_workflow",
    "get_workflow_mermaid",
    "list_workflows",
    "run_weather_workflow",
    "run_workflow",
]
