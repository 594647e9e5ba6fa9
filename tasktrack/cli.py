"""Command-line entry point for serving and seeding the tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from .config import Settings
from .database import Store
from .errors import StoreError
from .logging import setup_logger
from .seed import reset_and_seed, seed_if_empty

DESCRIPTION = "TaskTrack task and expense API"
LOG = logging.getLogger("tasktrack.cli")


def _add_serve_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Listen address (default: TASKTRACK_HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT or 5000)")
    serve.add_argument(
        "--no-seed",
        action="store_true",
        help="Do not insert sample data into an empty database",
    )


def _add_seed_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    seed = subparsers.add_parser("seed", help="Load the sample data into the configured database")
    seed.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing tasks and expenses before loading the sample data",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasktrack", description=DESCRIPTION)
    parser.add_argument("--json-logs", action="store_true", help="Also write JSON logs to artifacts/logs")
    parser.add_argument("--log-level", default=None, help="Logging level (default: TASKTRACK_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_serve_subparser(subparsers)
    _add_seed_subparser(subparsers)
    return parser


def _connect_or_exit(store: Store) -> None:
    try:
        store.connect()
    except StoreError as exc:
        LOG.critical("Failed to start: %s", exc)
        raise SystemExit(1) from exc


def _run_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from .server import create_app

    if args.no_seed:
        settings = replace(settings, seed_on_startup=False)
    store = Store(settings.database_url)
    _connect_or_exit(store)
    app = create_app(store=store, settings=settings)
    host = args.host or settings.host
    port = args.port or settings.port
    LOG.info("Server running on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=logging.getLevelName(LOG.getEffectiveLevel()).lower())
    return 0


def _run_seed(args: argparse.Namespace, settings: Settings) -> int:
    store = Store(settings.database_url)
    if store.in_memory:
        LOG.warning("No database URL configured; sample data will vanish when this command exits")
    _connect_or_exit(store)
    try:
        if args.reset:
            tasks, expenses = reset_and_seed(store)
            LOG.info("Sample data loaded. tasks=%d, expenses=%d", tasks, expenses)
        elif seed_if_empty(store):
            LOG.info("Sample data loaded")
        else:
            LOG.info("No sample data loaded; use --reset to replace existing records")
    except StoreError as exc:
        LOG.error("Seeding failed: %s", exc)
        return 1
    finally:
        store.disconnect()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    setup_logger(
        "tasktrack",
        json_format=args.json_logs or settings.json_logs,
        level=args.log_level or settings.log_level,
    )
    if args.command == "serve":
        return _run_serve(args, settings)
    if args.command == "seed":
        return _run_seed(args, settings)
    parser.error(f"Unknown command {args.command}")  # pragma: no cover - argparse guard
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
