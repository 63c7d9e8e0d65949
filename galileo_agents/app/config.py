"""
Configuration Management for the Galileo Agents Application

This module handles all application configuration using pydantic-settings.
Configuration precedence (highest to lowest):
1. Values passed to Settings()
2. Environment variables
3. .env file
4. Default values

Empty environment variables are treated as unset, so an empty
GALILEO_PROJECT_NAME falls back to its default instead of becoming "".
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Define base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class AgentConfig(BaseModel):
    """Per-agent model configuration."""

    agent_model_mapping: dict[str, str] = Field(
        default_factory=lambda: {
            "weather_agent": "openai:gpt-4o-mini",
            "stripe_agent": "openai:gpt-4o-mini",
        },
        description="Per-agent model overrides keyed by agent name",
    )


class StripeActionToggles(BaseModel):
    create: bool = True


class StripeProductActions(BaseModel):
    create: bool = True
    list: bool = True


class StripeSubscriptionActions(BaseModel):
    create: bool = True
    cancel: bool = True


class StripeActionsConfig(BaseModel):
    """Which Stripe operations the toolkit exposes to agents."""

    payment_links: StripeActionToggles = Field(default_factory=StripeActionToggles)
    products: StripeProductActions = Field(default_factory=StripeProductActions)
    customers: StripeActionToggles = Field(default_factory=StripeActionToggles)
    subscriptions: StripeSubscriptionActions = Field(default_factory=StripeSubscriptionActions)
    refunds: StripeActionToggles = Field(default_factory=StripeActionToggles)


class Settings(BaseSettings):
    """
    Application Settings

    All settings can be overridden via environment variables.
    Example: export GALILEO_PROJECT_NAME=my-project
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
        env_nested_delimiter="__",
        extra="ignore",
        validate_assignment=True,
    )

    # ===== Galileo Observability =====
    galileo_api_key: Optional[str] = Field(
        None,
        description="Galileo API key (required when Galileo logging is enabled)",
    )

    galileo_project_name: str = Field(
        default="galileo-agents",
        description="Galileo project that receives the traces",
    )

    galileo_log_stream_name: str = Field(
        default="default-stream",
        description="Galileo log stream inside the project",
    )

    galileo_base_url: str = Field(
        default="https://api.galileo.ai",
        description="Galileo console/API base URL",
    )

    galileo_enabled: bool = Field(
        default=True,
        description="Report tool and workflow spans to Galileo",
    )

    # ===== Model Provider =====
    openai_api_key: Optional[str] = Field(
        None,
        description="OpenAI API key used by the agents' default model",
    )

    model_name: str = Field(
        default="openai:gpt-4o-mini",
        description="Default model for agents without an explicit mapping",
    )

    agent_config: AgentConfig = Field(
        default_factory=AgentConfig,
        description="Per-agent model configuration",
    )

    # ===== Stripe =====
    stripe_secret_key: Optional[str] = Field(
        None,
        description="Stripe secret key (sk_test_... for development)",
    )

    stripe_actions: StripeActionsConfig = Field(
        default_factory=StripeActionsConfig,
        description="Enabled Stripe toolkit actions",
    )

    stripe_default_success_url: str = Field(
        default="https://example.com/success",
        description="Redirect after a successful payment when none is given",
    )

    stripe_default_cancel_url: str = Field(
        default="https://example.com/cancel",
        description="Cancel URL recorded on payment links when none is given",
    )

    # ===== Weather (Open-Meteo) =====
    geocoding_url: str = Field(
        default="https://geocoding-api.open-meteo.com/v1/search",
        description="Open-Meteo geocoding endpoint",
    )

    forecast_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Open-Meteo forecast endpoint",
    )

    weather_request_timeout: float = Field(
        default=10.0,
        ge=0.1,
        description="Timeout in seconds for Open-Meteo requests",
    )

    # ===== Tooling Configuration =====
    tool_rate_limit_per_minute: int = Field(
        default=60,
        ge=1,
        description="Maximum tool executions per minute across the process"
    )

    tool_execution_timeout: float = Field(
        default=30.0,
        ge=1.0,
        description="Per-tool execution timeout in seconds"
    )

    enable_tool_audit_log: bool = Field(
        default=True,
        description="Enable audit logging for tool executions"
    )

    # ===== Agent Memory =====
    memory_max_threads: int = Field(
        default=100,
        ge=1,
        description="Maximum number of conversation threads kept in memory",
    )

    memory_max_messages: int = Field(
        default=50,
        ge=2,
        description="Maximum number of messages kept per conversation thread",
    )

    # ===== Server Configuration =====
    host: str = Field(
        default="0.0.0.0",
        description="Server host address"
    )

    port: int = Field(
        default=4111,
        description="Server port number"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:4111"],
        description="Allowed CORS origins"
    )

    # ===== Application Configuration =====
    app_name: str = Field(
        default="Galileo Agents API",
        description="Application name"
    )

    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )

    # ===== Local Tracing (logfire) =====
    enable_tracing: bool = Field(
        default=True,
        description="Enable local run tracing with logfire"
    )

    logfire_token: Optional[str] = Field(
        None,
        description="Logfire token; spans are only sent when it is present"
    )

    # ===== Logging Configuration =====
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )

    @field_validator("galileo_enabled", mode="before")
    @classmethod
    def parse_enabled_flag(cls, v: Any) -> Any:
        """Only "true" (any case) and "1" enable Galileo; other strings disable it."""
        if isinstance(v, str):
            return v.strip().lower() == "true" or v.strip() == "1"
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @property
    def agent_model_mapping(self) -> dict[str, str]:
        return self.agent_config.agent_model_mapping

    def get_agent_model(self, agent_name: str) -> str:
        """Return the configured model for an agent, falling back to the default model."""
        return self.agent_model_mapping.get(agent_name, self.model_name)


# Singleton instance
_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Get application settings (singleton pattern)

    Args:
        reload: If True, reload settings from sources

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = Settings()

    return _settings


# For convenience
settings = get_settings()


if __name__ == "__main__":
    import json
    s = get_settings()
    print("Loaded configuration:")
    print(json.dumps(s.model_dump(exclude={"galileo_api_key", "stripe_secret_key", "openai_api_key"}), indent=2, default=str))
