"""
Command-line entry point: ``python -m todo_service`` or ``todo-service``.

Flags override the environment settings.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
from typing import Optional, Sequence

import uvicorn

from .logging_setup import setup_logging
from .main import create_app
from .settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-service", description="Run the ToDo service.")
    parser.add_argument("--host", default="0.0.0.0", help="interface to bind")
    parser.add_argument("--port", type=int, default=None, help="port to bind (TODO_PORT)")
    parser.add_argument("--db-path", default=None, help="sqlite database file (TODO_DB_PATH)")
    parser.add_argument("--pool-size", type=int, default=None, help="store connection pool size")
    parser.add_argument("--log-level", default=None, help="log level name (TODO_LOG_LEVEL)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.port is not None:
        if not 0 < args.port < 65536:
            parser.error(f"invalid port for HTTP server: '{args.port}'")
        overrides["port"] = args.port
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.pool_size is not None:
        if args.pool_size < 1:
            parser.error(f"invalid pool size: '{args.pool_size}'")
        overrides["pool_size"] = args.pool_size
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    settings = dataclasses.replace(settings, **overrides)

    setup_logging(settings.log_level)
    logger.info("starting ToDo service on %s:%s db=%s", args.host, settings.port, settings.db_path)
    uvicorn.run(create_app(settings), host=args.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
