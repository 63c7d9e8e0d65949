"""Command-line interface: setup checks, a workflow runner, and the API server."""

import argparse
import asyncio
import importlib
import logging
import os
import sys
from typing import Mapping, Optional, Sequence

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

GALILEO_REQUIRED = ("GALILEO_API_KEY", "GALILEO_PROJECT_NAME", "GALILEO_LOG_STREAM_NAME")
GALILEO_OPTIONAL = ("GALILEO_BASE_URL", "GALILEO_ENABLED")
STRIPE_REQUIRED = ("STRIPE_SECRET_KEY", "GALILEO_API_KEY", "OPENAI_API_KEY")


def load_environment(env_file: str = ".env") -> dict[str, str]:
    """Variables from ``env_file`` overlaid by the process environment."""
    values = {key: value for key, value in dotenv_values(env_file).items() if value}
    values.update({key: value for key, value in os.environ.items() if value})
    return values


def missing_variables(names: Sequence[str], environ: Mapping[str, str]) -> list[str]:
    return [name for name in names if not environ.get(name)]


def _display(name: str, value: str) -> str:
    if "KEY" in name:
        from galileo_agents.app.utils.helpers import mask_secret
        return mask_secret(value)
    return value


def report_variables(
    required: Sequence[str],
    optional: Sequence[str],
    environ: Mapping[str, str],
) -> bool:
    """Print which variables are set. Returns False if a required one is missing."""
    print("Environment variables")
    print("-" * 40)

    print("Required:")
    for name in required:
        value = environ.get(name)
        if value:
            print(f"  [ok]      {name}: {_display(name, value)}")
        else:
            print(f"  [missing] {name}: NOT SET")

    if optional:
        print("Optional:")
        for name in optional:
            value = environ.get(name)
            if value:
                print(f"  [ok]      {name}: {value}")
            else:
                print(f"  [default] {name}: NOT SET (using default)")

    return not missing_variables(required, environ)


def check_galileo_import() -> bool:
    try:
        galileo = importlib.import_module("galileo")
    except ImportError as e:
        print(f"Failed to import the galileo package: {e}")
        return False

    public = sorted(name for name in dir(galileo) if not name.startswith("_"))
    print("galileo package imported successfully")
    print(f"Available names: {', '.join(public)}")
    return True


def cmd_check_setup(args: argparse.Namespace) -> int:
    """Check the Galileo environment variables and the SDK import."""
    environ = load_environment(args.env_file)
    if not report_variables(GALILEO_REQUIRED, GALILEO_OPTIONAL, environ):
        print()
        print("Missing required environment variables.")
        print("Copy .env.example to .env and fill in GALILEO_API_KEY and OPENAI_API_KEY.")
        return 1

    print()
    if not check_galileo_import():
        return 1

    print()
    print("Galileo setup looks good.")
    return 0


def cmd_check_stripe(args: argparse.Namespace) -> int:
    """Check the Stripe key, list the enabled toolkit actions, and import galileo."""
    from galileo_agents.app.services.stripe_toolkit import get_stripe_toolkit

    environ = load_environment(args.env_file)
    if not report_variables(STRIPE_REQUIRED, (), environ):
        print()
        print("Missing required environment variables.")
        print("Add STRIPE_SECRET_KEY=sk_test_... to .env and make sure the Galileo and OpenAI keys are set.")
        return 1

    print()
    try:
        toolkit = get_stripe_toolkit()
    except Exception as e:
        print(f"Failed to initialize the Stripe toolkit: {e}")
        return 1

    tools = toolkit.get_tools()
    print(f"Stripe toolkit initialized, {len(tools)} actions enabled:")
    for name in tools:
        print(f"  - {name}")

    print()
    if not check_galileo_import():
        return 1
    return 0


def cmd_check_flush(args: argparse.Namespace) -> int:
    """Log one span with an immediate flush, then flush manually."""
    from galileo_agents.app.core.observability.galileo_logger import (
        flush_galileo,
        initialize_galileo,
        log_with_flush,
    )

    @log_with_flush("test-immediate-flush", span_type="tool")
    async def sample_operation(data: str) -> dict:
        await asyncio.sleep(0.5)
        return {"result": f"Processed: {data}"}

    async def run() -> None:
        print("Initializing Galileo...")
        if not await initialize_galileo():
            print("Galileo is disabled (GALILEO_ENABLED), nothing will be sent")

        print("Logging a span with immediate flush...")
        result = await sample_operation("test-data")
        print(f"Result: {result}")

        print("Flushing...")
        await flush_galileo()

    try:
        asyncio.run(run())
    except Exception as e:
        print(f"Galileo flush check failed: {e}")
        return 1

    print("Flush check completed, the span should be visible in the Galileo console.")
    return 0


def cmd_run_workflow(args: argparse.Namespace) -> int:
    """Run the weather workflow and stream the activity plan to stdout."""
    from galileo_agents.app.core.exceptions import ConfigurationError
    from galileo_agents.app.core.graph.executor import run_weather_workflow
    from galileo_agents.app.core.observability.galileo_logger import (
        initialize_galileo,
        install_shutdown_handlers,
    )

    def print_chunk(chunk: str) -> None:
        sys.stdout.write(chunk)
        sys.stdout.flush()

    async def run():
        try:
            if await initialize_galileo():
                install_shutdown_handlers()
        except ConfigurationError as e:
            logger.warning(f"Running without Galileo: {e}")
        return await run_weather_workflow(args.city, on_chunk=print_chunk)

    try:
        result = asyncio.run(run())
    except Exception as e:
        print(f"\nWorkflow failed: {e}", file=sys.stderr)
        return 1

    print()
    print("-" * 60)
    print(f"Run: {result.run_id}")
    print(f"Steps: {', '.join(result.completed_steps)}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    from galileo_agents.app.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "galileo_agents.app.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="galileo-agents",
        description="Galileo Agents - weather and Stripe agents with Galileo observability",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    setup_parser = subparsers.add_parser("check-setup", help="Check Galileo environment and SDK")
    setup_parser.add_argument("--env-file", default=".env", help="Env file to read (default: .env)")

    stripe_parser = subparsers.add_parser("check-stripe", help="Check Stripe key and toolkit actions")
    stripe_parser.add_argument("--env-file", default=".env", help="Env file to read (default: .env)")

    subparsers.add_parser("check-flush", help="Send a test span and flush it")

    workflow_parser = subparsers.add_parser("run-workflow", help="Run the weather workflow")
    workflow_parser.add_argument("--city", required=True, help="City to plan activities for")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings.host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: settings.port)")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    return parser


COMMANDS = {
    "check-setup": cmd_check_setup,
    "check-stripe": cmd_check_stripe,
    "check-flush": cmd_check_flush,
    "run-workflow": cmd_run_workflow,
    "serve": cmd_serve,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        return 1

    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
