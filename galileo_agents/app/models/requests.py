"""
Request Models - API request schemas

These models define the structure of incoming API requests
and provide automatic validation using Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class WeatherWorkflowRequest(BaseModel):
    """
    Input for the weather workflow

    Example:
        {
            "city": "London"
        }
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"city": "London"},
                {"city": "San Francisco"},
            ]
        }
    )

    city: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="The city to get the weather for"
    )


class TracingExampleRequest(BaseModel):
    """Input for the tracing example workflow."""

    data: str = Field(..., description="Text to process")


class ChatRequest(BaseModel):
    """
    A message for an agent.

    Messages sent with the same thread_id share conversation memory.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "What's the weather in Paris?", "thread_id": "demo"},
                {"message": "Create a payment link for 'Consulting' at 5000 cents"},
            ]
        }
    )

    message: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="User message"
    )
    thread_id: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Conversation thread; a new one is started when omitted"
    )

