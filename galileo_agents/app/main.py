"""
Main FastAPI Application

This is the entry point for the Galileo Agents API.
It configures the FastAPI app with all routes, middleware, and settings.
"""

import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from galileo_agents.app.config import get_settings
from galileo_agents.app.api.routes import health, agents, tools, workflows
from galileo_agents.app.core.exceptions import (
    AgentExecutionError,
    AgentNotFoundError,
    ConfigurationError,
    LocationNotFoundError,
    StripeToolError,
    ToolExecutionError,
    WeatherServiceError,
    WorkflowError,
    WorkflowNotFoundError,
)
from galileo_agents.app.core.observability.galileo_logger import flush_galileo, initialize_galileo
from galileo_agents.app.core.observability.tracer import get_tracer


# Get application settings
settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level, format=settings.log_format)
logger = logging.getLogger(__name__)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="""
    AI agents and workflows with Galileo observability.

    Every tool call and workflow step is reported to Galileo as a span, so a
    run shows up in the Galileo console as one trace with nested spans.

    ## Features

    - **Weather Workflow**: Fetch current conditions for a city and plan activities with `/workflows/weather-workflow/run`
    - **Tracing Example**: A two-step workflow showing automatic span creation with `/workflows/tracing-example-workflow/run`
    - **Agent Chat**: Talk to the weather or Stripe agent with `/agents/{agent_id}/chat`
    - **Direct Tool Calls**: Run a tool without an agent with `/tools/execute`
    - **Graph Visualization**: View a workflow with `/workflows/{workflow_id}/mermaid`

    ## Agents

    1. **weather_agent**: Current weather and activity suggestions (Open-Meteo)
    2. **stripe_agent**: Payment links, customers, products, subscriptions and refunds (Stripe)
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Configure CORS with environment-specific origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins if settings.cors_origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add tracing middleware
@app.middleware("http")
async def tracing_middleware(request: Request, call_next):
    """
    Middleware to add request tracing and performance monitoring.

    Captures:
    - Request ID for correlation
    - Request timing
    - Error tracking
    """
    # Generate request ID (always, for all requests)
    request_id = request.headers.get("X-Request-ID", f"req_{int(time.time() * 1000)}")

    # Skip detailed tracing for health checks and docs
    skip_detailed_tracing = request.url.path in ["/health", "/docs", "/redoc", "/openapi.json"]

    if skip_detailed_tracing or not settings.enable_tracing:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    tracer = get_tracer()
    start_time = time.time()

    try:
        if tracer.enable_tracing:
            import logfire
            logfire.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                request_id=request_id
            )

        response = await call_next(request)

        duration = time.time() - start_time

        if tracer.enable_tracing:
            import logfire
            logfire.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                request_id=request_id,
                status_code=response.status_code,
                duration_seconds=duration
            )

        response.headers["X-Request-ID"] = request_id

        return response

    except Exception as e:
        duration = time.time() - start_time

        if tracer.enable_tracing:
            import logfire
            logfire.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                request_id=request_id,
                error=str(e),
                duration_seconds=duration
            )

        raise


# Include routers
app.include_router(health.router)
app.include_router(agents.router)
app.include_router(tools.router)
app.include_router(workflows.router)


def _error_response(status_code: int, error: str, exc: Exception, retry: bool) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "detail": str(exc),
            "type": type(exc).__name__,
            "retry": retry
        }
    )


# Specific exception handlers
@app.exception_handler(ValidationError)
async def input_validation_exception_handler(request: Request, exc: ValidationError):
    """Workflow inputs that do not match the workflow's input model."""
    logger.warning(f"Invalid input: {exc.error_count()} validation error(s)")
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid Input",
            "detail": exc.errors(include_url=False, include_context=False),
            "type": "ValidationError",
            "retry": False
        }
    )


@app.exception_handler(ValueError)
async def validation_exception_handler(request: Request, exc: ValueError):
    """
    Handle data validation errors explicitly.

    Returns 400 Bad Request with validation error details.
    """
    logger.warning(f"Validation error: {str(exc)}")
    return _error_response(400, "Validation Error", exc, retry=False)


@app.exception_handler(WorkflowNotFoundError)
async def workflow_not_found_exception_handler(request: Request, exc: WorkflowNotFoundError):
    logger.warning(str(exc))
    return _error_response(404, "Workflow Not Found", exc, retry=False)


@app.exception_handler(AgentNotFoundError)
async def agent_not_found_exception_handler(request: Request, exc: AgentNotFoundError):
    logger.warning(str(exc))
    return _error_response(404, "Agent Not Found", exc, retry=False)


@app.exception_handler(LocationNotFoundError)
async def location_not_found_exception_handler(request: Request, exc: LocationNotFoundError):
    """An unknown city is a client error, not an upstream failure."""
    logger.warning(str(exc))
    return _error_response(404, "Location Not Found", exc, retry=False)


@app.exception_handler(WeatherServiceError)
async def weather_service_exception_handler(request: Request, exc: WeatherServiceError):
    """Handle Open-Meteo failures."""
    logger.error(f"Weather service error: {str(exc)}")
    return _error_response(502, "Weather Service Error", exc, retry=True)


@app.exception_handler(StripeToolError)
async def stripe_exception_handler(request: Request, exc: StripeToolError):
    """Handle Stripe API failures."""
    logger.error(f"Stripe error: {str(exc)}")
    return _error_response(502, "Stripe Error", exc, retry=False)


@app.exception_handler(ToolExecutionError)
async def tool_execution_exception_handler(request: Request, exc: ToolExecutionError):
    """Handle tool execution failures."""
    logger.error(f"Tool execution error: {str(exc)}", exc_info=True)
    return _error_response(500, "Tool Execution Error", exc, retry=True)


@app.exception_handler(AgentExecutionError)
async def agent_execution_exception_handler(request: Request, exc: AgentExecutionError):
    """Handle agent execution failures."""
    logger.error(f"Agent execution error: {str(exc)}", exc_info=True)
    return _error_response(500, "Agent Execution Error", exc, retry=True)


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Handle workflow step failures."""
    logger.error(f"Workflow error: {str(exc)}", exc_info=True)
    return _error_response(500, "Workflow Error", exc, retry=True)


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    """A required key (Stripe, Galileo) is missing on the server."""
    logger.error(f"Configuration error: {str(exc)}")
    return _error_response(500, "Configuration Error", exc, retry=False)


# Global exception handler (catch-all)
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Logs the full traceback but returns a safe error message to the client.
    """
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            # Only include detailed error message in debug mode
            "detail": str(exc) if settings.debug else "An unexpected error occurred. Please contact support.",
            "type": type(exc).__name__,
            "retry": False
        }
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """
    Startup event handler.

    Initializes Galileo. A missing key or an SDK failure is logged and the
    API keeps serving without Galileo spans.
    """
    try:
        await initialize_galileo(settings)
    except Exception as e:
        logger.error(f"Galileo initialization failed, continuing without it: {e}")

    logger.info("=" * 60)
    logger.info(settings.app_name)
    logger.info("=" * 60)
    logger.info(f"Version: {app.version}")
    logger.info(f"Docs: http://localhost:{settings.port}/docs")
    logger.info(f"Model: {settings.model_name}")
    logger.info(f"Galileo project: {settings.galileo_project_name} / {settings.galileo_log_stream_name}")
    logger.info("=" * 60)


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Flush pending Galileo spans before the process exits."""
    logger.info("Shutting down Galileo Agents API...")
    await flush_galileo()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "galileo_agents.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )
