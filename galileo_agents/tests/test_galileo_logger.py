"""
Tests for the Galileo logging integration

The Galileo SDK is replaced with recording fakes, so these tests check what
the integration asks of the SDK, not what the SDK does with it.
"""

from contextvars import ContextVar

import pytest

from galileo_agents.app.config import get_settings
from galileo_agents.app.core.exceptions import ConfigurationError
from galileo_agents.app.core.observability import galileo_logger


SDK_ENV_VARS = ("GALILEO_PROJECT", "GALILEO_LOG_STREAM", "GALILEO_CONSOLE_URL")

# Stands in for the project context variable the SDK sets in init
SDK_PROJECT: ContextVar = ContextVar("sdk_project", default=None)


class FakeGalileoContext:
    def __init__(self, fail_flush: bool = False):
        self.init_calls = []
        self.flush_count = 0
        self.fail_flush = fail_flush

    def init(self, **kwargs):
        self.init_calls.append(kwargs)

    def flush(self):
        self.flush_count += 1
        if self.fail_flush:
            raise RuntimeError("network down")

    def get_logger_instance(self, **kwargs):
        return ("logger", kwargs)


class RecordingLog:
    """Stand-in for galileo.log: records span names and calls through."""

    def __init__(self):
        self.spans = []

    def __call__(self, name, span_type):
        def decorator(func):
            self.spans.append((name, span_type))
            return func
        return decorator


@pytest.fixture
def galileo_enabled(monkeypatch):
    monkeypatch.setenv("GALILEO_ENABLED", "true")
    monkeypatch.setenv("GALILEO_API_KEY", "gal-test-key")
    monkeypatch.setenv("GALILEO_PROJECT_NAME", "test-project")
    monkeypatch.setenv("GALILEO_LOG_STREAM_NAME", "test-stream")
    # The integration exports these for the SDK; make sure they are cleaned up
    for name in SDK_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    get_settings(reload=True)


@pytest.fixture
def fake_context(monkeypatch):
    context = FakeGalileoContext()
    monkeypatch.setattr(galileo_logger, "galileo_context", context)
    return context


@pytest.fixture
def recording_log(monkeypatch):
    log = RecordingLog()
    monkeypatch.setattr(galileo_logger, "galileo_log", log)
    return log


@pytest.fixture(autouse=True)
def reset_initialized(monkeypatch):
    monkeypatch.setattr(galileo_logger, "_initialized", False)


class TestLogOperation:

    @pytest.mark.asyncio
    async def test_disabled_returns_value_without_sdk(self, recording_log):
        @galileo_logger.log_operation("test-op")
        async def add(a, b):
            return a + b

        assert await add(2, 3) == 5
        assert recording_log.spans == []

    def test_disabled_sync_function(self, recording_log):
        @galileo_logger.log_operation("sync-op")
        def double(x):
            return x * 2

        assert double(21) == 42
        assert recording_log.spans == []

    @pytest.mark.asyncio
    async def test_enabled_reports_span_and_returns_value(
        self, galileo_enabled, recording_log, fake_context
    ):
        @galileo_logger.log_operation("create-customer-api-call", span_type="tool")
        async def create(email):
            return {"email": email}

        result = await create("ada@example.com")

        assert result == {"email": "ada@example.com"}
        assert recording_log.spans == [("create-customer-api-call", "tool")]
        assert fake_context.flush_count == 0

    @pytest.mark.asyncio
    async def test_log_with_flush_flushes_after_call(
        self, galileo_enabled, recording_log, fake_context
    ):
        @galileo_logger.log_with_flush("flushed-op")
        async def work():
            return "done"

        assert await work() == "done"
        assert fake_context.flush_count == 1

    @pytest.mark.asyncio
    async def test_flush_happens_even_when_call_raises(
        self, galileo_enabled, recording_log, fake_context
    ):
        @galileo_logger.log_with_flush("failing-op")
        async def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await fail()
        assert fake_context.flush_count == 1

    def test_missing_api_key_runs_call_without_span(
        self, galileo_enabled, monkeypatch, recording_log, stripe_toolkit, stripe_api, caplog
    ):
        monkeypatch.delenv("GALILEO_API_KEY")
        monkeypatch.setattr(galileo_logger, "_missing_key_warned", False)
        get_settings(reload=True)

        with caplog.at_level("WARNING", logger=galileo_logger.__name__):
            first = stripe_toolkit.create_customer("ada@example.com")
            stripe_toolkit.create_customer("grace@example.com")

        assert first["customer_id"] == "cus_123"
        assert stripe_api.called("Customer.create")
        assert recording_log.spans == []
        warnings = [r for r in caplog.records if "Galileo spans disabled" in r.getMessage()]
        assert len(warnings) == 1

    def test_preserves_function_metadata(self):
        @galileo_logger.log_operation("named-op")
        def documented():
            """Does a thing."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Does a thing."


class TestInitialize:

    @pytest.mark.asyncio
    async def test_initialize_uses_project_and_stream(self, galileo_enabled, fake_context):
        assert await galileo_logger.initialize_galileo() is True

        assert fake_context.init_calls == [{"project": "test-project", "log_stream": "test-stream"}]
        assert galileo_logger.is_initialized() is True

    @pytest.mark.asyncio
    async def test_initialize_keeps_sdk_context(self, galileo_enabled, monkeypatch):
        class ContextSettingContext(FakeGalileoContext):
            def init(self, **kwargs):
                super().init(**kwargs)
                SDK_PROJECT.set(kwargs["project"])

        monkeypatch.setattr(galileo_logger, "galileo_context", ContextSettingContext())

        await galileo_logger.initialize_galileo()

        assert SDK_PROJECT.get() == "test-project"

    @pytest.mark.asyncio
    async def test_initialize_skipped_when_disabled(self, fake_context):
        assert await galileo_logger.initialize_galileo() is False
        assert fake_context.init_calls == []
        assert galileo_logger.is_initialized() is False

    @pytest.mark.asyncio
    async def test_initialize_requires_api_key(self, galileo_enabled, monkeypatch, fake_context):
        monkeypatch.delenv("GALILEO_API_KEY")
        get_settings(reload=True)

        with pytest.raises(ConfigurationError):
            await galileo_logger.initialize_galileo()
        assert fake_context.init_calls == []

    @pytest.mark.asyncio
    async def test_initialize_propagates_sdk_failure(self, galileo_enabled, monkeypatch):
        class BrokenContext(FakeGalileoContext):
            def init(self, **kwargs):
                raise RuntimeError("invalid key")

        monkeypatch.setattr(galileo_logger, "galileo_context", BrokenContext())

        with pytest.raises(RuntimeError, match="invalid key"):
            await galileo_logger.initialize_galileo()
        assert galileo_logger.is_initialized() is False


class TestFlush:

    def test_flush_errors_are_swallowed(self, galileo_enabled, monkeypatch):
        context = FakeGalileoContext(fail_flush=True)
        monkeypatch.setattr(galileo_logger, "galileo_context", context)

        galileo_logger.graceful_flush()

        assert context.flush_count == 1

    def test_flush_is_noop_when_disabled(self, fake_context):
        galileo_logger.graceful_flush()

        assert fake_context.flush_count == 0

    @pytest.mark.asyncio
    async def test_async_flush(self, galileo_enabled, fake_context):
        await galileo_logger.flush_galileo()

        assert fake_context.flush_count == 1

    def test_logger_instance_bound_to_project(self, galileo_enabled, fake_context):
        _, kwargs = galileo_logger.get_galileo_logger()

        assert kwargs == {"project": "test-project", "log_stream": "test-stream"}


class TestShutdownHandlers:

    @pytest.fixture
    def hooks(self, monkeypatch):
        recorded = {"signals": [], "atexit": []}
        monkeypatch.setattr(galileo_logger, "_handlers_installed", False)
        monkeypatch.setattr(galileo_logger.signal, "signal", lambda sig, handler: recorded["signals"].append(sig))
        monkeypatch.setattr(galileo_logger.atexit, "register", recorded["atexit"].append)
        monkeypatch.setattr(galileo_logger.sys, "excepthook", lambda *exc_info: None)
        return recorded

    def test_installed_once(self, hooks):
        galileo_logger.install_shutdown_handlers()
        galileo_logger.install_shutdown_handlers()

        assert hooks["signals"] == [galileo_logger.signal.SIGINT, galileo_logger.signal.SIGTERM]
        assert hooks["atexit"] == [galileo_logger._on_exit]

    def test_excepthook_flushes(self, hooks, galileo_enabled, fake_context):
        galileo_logger.install_shutdown_handlers()

        galileo_logger.sys.excepthook(RuntimeError, RuntimeError("boom"), None)

        assert fake_context.flush_count == 1
