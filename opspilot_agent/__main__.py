"""CLI entry point for OpsPilot.

Usage:
    # Start the API server (scheduler included)
    python -m opspilot_agent serve
    OPSPILOT_DEV_MODE=true python -m opspilot_agent serve

    # Run agents once and print the results as JSON
    python -m opspilot_agent run vendor-monitor
    python -m opspilot_agent run invoice-validator --seed
    python -m opspilot_agent run-all --seed

    # Registered agents
    python -m opspilot_agent status

    # Load sample data into the configured store
    python -m opspilot_agent seed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from .config import OpsPilotSettings, get_settings
from .errors import NotFoundError, UnitExecutionError

logger = logging.getLogger("opspilot.cli")


def _configure_logging(settings: OpsPilotSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _with_state(
    settings: OpsPilotSettings,
    fn: Callable[[Any], Awaitable[int]],
    *,
    seed: bool = False,
) -> int:
    """Build the app state, optionally seed, run ``fn``, then close the store."""
    from .sample_data import seed_sample_data
    from .server import build_state

    async def _main() -> int:
        state = build_state(settings)
        try:
            if seed or settings.seed_sample_data:
                await seed_sample_data(state.store)
            return await fn(state)
        finally:
            await state.store.close()

    return asyncio.run(_main())


def _cmd_serve(args: argparse.Namespace, settings: OpsPilotSettings) -> int:
    """Start the API server."""
    import uvicorn

    from .server import create_app

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_run(args: argparse.Namespace, settings: OpsPilotSettings) -> int:
    """Run a single agent."""

    async def _run(state) -> int:
        try:
            result = await state.orchestrator.run_one(args.name)
        except NotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            print(
                f"Available: {', '.join(state.registry.list_names())}",
                file=sys.stderr,
            )
            return 1
        except UnitExecutionError as e:
            print(f"Agent '{e.agent}' failed: {e}", file=sys.stderr)
            return 1
        _print_json(result.model_dump(mode="json"))
        return 0

    return _with_state(settings, _run, seed=args.seed)


def _cmd_run_all(args: argparse.Namespace, settings: OpsPilotSettings) -> int:
    """Run every registered agent once."""

    async def _run(state) -> int:
        entries = await state.orchestrator.run_all()
        _print_json([e.model_dump(mode="json") for e in entries])
        return 0 if all(e.ok for e in entries) else 1

    return _with_state(settings, _run, seed=args.seed)


def _cmd_status(args: argparse.Namespace, settings: OpsPilotSettings) -> int:
    """List registered agents."""
    from .agents import build_default_registry

    for status in build_default_registry().status():
        print(f"  {status.name:<20} {status.display_name:<28} ({status.entity_type})")
    return 0


def _cmd_seed(args: argparse.Namespace, settings: OpsPilotSettings) -> int:
    """Load the sample dataset."""
    from .sample_data import seed_sample_data

    async def _seed(state) -> int:
        counts = await seed_sample_data(state.store)
        for table, count in counts.items():
            print(f"  {table:<12} {count} row(s)")
        return 0

    if not settings.supabase_url:
        print(
            "Warning: no Supabase configured; seeding the in-memory store only",
            file=sys.stderr,
        )
    return _with_state(settings, _seed)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="opspilot_agent",
        description="OpsPilot: multi-agent supply chain analysis",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("serve", help="Start the API server")

    run_parser = subparsers.add_parser("run", help="Run one agent")
    run_parser.add_argument("name", help="Agent name (e.g. vendor-monitor)")
    run_parser.add_argument(
        "--seed", action="store_true", help="Load sample data before running"
    )

    run_all_parser = subparsers.add_parser("run-all", help="Run every agent once")
    run_all_parser.add_argument(
        "--seed", action="store_true", help="Load sample data before running"
    )

    subparsers.add_parser("status", help="List registered agents")
    subparsers.add_parser("seed", help="Load sample data into the data store")

    args = parser.parse_args(argv)
    settings = get_settings()
    _configure_logging(settings)

    commands = {
        "serve": _cmd_serve,
        "run": _cmd_run,
        "run-all": _cmd_run_all,
        "status": _cmd_status,
        "seed": _cmd_seed,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
