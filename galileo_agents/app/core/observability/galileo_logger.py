"""
Galileo logging integration.

Loads the Galileo configuration from settings, initialises the Galileo
context, and exposes the ``log_operation`` decorator that reports a tool or
workflow callable to Galileo as a span. When ``GALILEO_ENABLED`` is false the
decorator leaves the callable untouched and flushing is a no-op.

Flushing is best effort: errors are logged and never raised, so a Galileo
outage cannot fail a tool call or block shutdown.
"""

from __future__ import annotations

import asyncio
import atexit
import inspect
import logging
import os
import signal
import sys
import threading
from functools import wraps
from typing import Any, Callable, Literal, Optional, TypeVar

from galileo import galileo_context
from galileo import log as galileo_log
from pydantic import BaseModel

from galileo_agents.app.config import Settings, get_settings
from galileo_agents.app.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

T = TypeVar("T")

SpanType = Literal["workflow", "tool", "llm", "agent", "retriever"]


class GalileoConfig(BaseModel):
    """Resolved Galileo settings."""

    project_name: str
    log_stream_name: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    enabled: bool = True


_initialized = False
_handlers_installed = False
_missing_key_warned = False


def get_galileo_config(settings: Optional[Settings] = None) -> GalileoConfig:
    """
    Build the Galileo configuration from application settings.

    Raises:
        ConfigurationError: If Galileo is enabled but GALILEO_API_KEY is not set.
    """
    settings = settings or get_settings()
    if settings.galileo_enabled and not settings.galileo_api_key:
        raise ConfigurationError("Required environment variable GALILEO_API_KEY is not set")

    return GalileoConfig(
        project_name=settings.galileo_project_name,
        log_stream_name=settings.galileo_log_stream_name,
        api_key=settings.galileo_api_key,
        base_url=settings.galileo_base_url,
        enabled=settings.galileo_enabled,
    )


def _export_environment(config: GalileoConfig) -> None:
    """Expose .env-loaded values to the SDK, which reads os.environ directly."""
    if config.api_key:
        os.environ.setdefault("GALILEO_API_KEY", config.api_key)
    if config.base_url:
        os.environ.setdefault("GALILEO_CONSOLE_URL", config.base_url)
    os.environ.setdefault("GALILEO_PROJECT", config.project_name)
    os.environ.setdefault("GALILEO_LOG_STREAM", config.log_stream_name)


def _span_config() -> Optional[GalileoConfig]:
    """
    Configuration for a decorated call, or None to run it without a span.

    A missing API key disables span export instead of failing the call; the
    warning is logged once per process.
    """
    global _missing_key_warned

    if not get_settings().galileo_enabled:
        return None
    try:
        config = get_galileo_config()
    except ConfigurationError as exc:
        if not _missing_key_warned:
            logger.warning("Galileo spans disabled: %s", exc)
            _missing_key_warned = True
        return None
    _export_environment(config)
    return config


def is_initialized() -> bool:
    return _initialized


async def initialize_galileo(settings: Optional[Settings] = None) -> bool:
    """
    Initialize the Galileo context for the configured project and log stream.

    Call this once at application startup.

    Returns:
        True when the context was initialised, False when Galileo is disabled.

    Raises:
        ConfigurationError: If the API key is missing.
        Exception: Any SDK initialisation failure, after it has been logged.
    """
    global _initialized

    config = get_galileo_config(settings)
    if not config.enabled:
        logger.warning("Galileo is disabled, skipping initialization")
        return False

    _export_environment(config)
    try:
        # init sets the SDK context variables, so it runs in the caller's context
        galileo_context.init(
            project=config.project_name,
            log_stream=config.log_stream_name,
        )
    except Exception:
        logger.error("Failed to initialize Galileo context", exc_info=True)
        raise

    _initialized = True
    logger.info(
        "Galileo context initialized for project: %s, stream: %s",
        config.project_name,
        config.log_stream_name,
    )
    return True


def get_galileo_logger() -> Any:
    """Return the SDK logger bound to the configured project and log stream."""
    config = get_galileo_config()
    _export_environment(config)
    return galileo_context.get_logger_instance(
        project=config.project_name,
        log_stream=config.log_stream_name,
    )


def graceful_flush() -> None:
    """Flush pending Galileo data; failures are logged, not raised."""
    if not get_settings().galileo_enabled:
        return

    try:
        logger.info("Flushing Galileo logger...")
        galileo_context.flush()
        logger.info("Galileo logger flushed successfully")
    except Exception:
        logger.error("Error flushing Galileo logger", exc_info=True)


async def flush_galileo() -> None:
    """Async variant of graceful_flush that keeps the event loop free."""
    await asyncio.to_thread(graceful_flush)


def _handle_signal(signum: int, frame: Any) -> None:
    logger.info("Received %s, gracefully shutting down...", signal.Signals(signum).name)
    graceful_flush()
    sys.exit(0)


def _on_exit() -> None:
    logger.info("Process exiting, flushing Galileo logger...")
    graceful_flush()


def install_shutdown_handlers() -> None:
    """
    Flush Galileo on SIGINT, SIGTERM, uncaught exceptions and interpreter exit.

    Signal handlers can only be installed from the main thread; elsewhere only
    the atexit hook and the exception hook are registered. Safe to call twice.
    """
    global _handlers_installed
    if _handlers_installed:
        return

    atexit.register(_on_exit)

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

    previous_hook = sys.excepthook

    def _excepthook(exc_type, exc, tb) -> None:
        logger.error("Unhandled exception, flushing Galileo logger", exc_info=(exc_type, exc, tb))
        graceful_flush()
        previous_hook(exc_type, exc, tb)

    sys.excepthook = _excepthook
    _handlers_installed = True


def log_operation(
    name: str,
    span_type: SpanType = "tool",
    *,
    flush: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator that reports a callable to Galileo as a span.

    The enabled flag is read on every call, so toggling GALILEO_ENABLED and
    reloading settings takes effect without re-importing decorated modules.
    Without an API key the callable runs unwrapped.

    Args:
        name: Span name shown in the Galileo console
        span_type: "workflow", "tool", "llm", "agent" or "retriever"
        flush: Flush the Galileo logger right after the call returns or raises

    Example:
        @log_operation("create-customer-api-call", span_type="tool")
        async def create_customer(email: str) -> dict:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                if _span_config() is None:
                    return await func(*args, **kwargs)

                logged = galileo_log(name=name, span_type=span_type)(func)
                try:
                    return await logged(*args, **kwargs)
                finally:
                    if flush:
                        await flush_galileo()

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            if _span_config() is None:
                return func(*args, **kwargs)

            logged = galileo_log(name=name, span_type=span_type)(func)
            try:
                return logged(*args, **kwargs)
            finally:
                if flush:
                    graceful_flush()

        return sync_wrapper

    return decorator


def log_with_flush(
    name: str,
    span_type: SpanType = "tool",
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """log_operation that flushes immediately so data shows up in the console right away."""
    return log_operation(name, span_type, flush=True)


__all__ = [
    "GalileoConfig",
    "SpanType",
    "get_galileo_config",
    "initialize_galileo",
    "is_initialized",
    "get_galileo_logger",
    "graceful_flush",
    "flush_galileo",
    "install_shutdown_handlers",
    "log_operation",
    "log_with_flush",
]
