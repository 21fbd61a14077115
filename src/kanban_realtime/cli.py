from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn
from loguru import logger

from .config import load_settings
from .errors import ConfigError
from .logging_utils import configure_logging
from .server import create_app


def _server(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(
            config_path=args.config,
            host=args.host,
            port=args.port,
            database_url=args.database_url,
            data_file=args.data_file,
            static_dir=args.static_dir,
            log_level=args.log_level,
            realtime_enabled=False if args.no_realtime else None,
        )
    except ConfigError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return 2

    configure_logging(settings.log_level)
    app = create_app(settings)
    board = app.state.board

    logger.info("Kanban server on http://{}:{}", settings.host, settings.port)
    if settings.realtime_enabled:
        logger.info("Realtime channel at ws://{}:{}/ws", settings.host, settings.port)
    logger.info("Storage: {}", "PostgreSQL" if board.store.relational else f"local file ({settings.data_file})")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Realtime kanban task board server")
    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", help="Start the board server")
    server.add_argument("--host", default=None)
    server.add_argument("--port", default=None, type=int)
    server.add_argument("--database-url", default=None, help="Relational backend URL (default: $DATABASE_URL)")
    server.add_argument("--data-file", default=None, type=Path, help="JSON file used when no database is reachable")
    server.add_argument("--static-dir", default=None, type=Path)
    server.add_argument("--config", default=None, type=Path, help="YAML config file (default: $KANBAN_CONFIG)")
    server.add_argument("--log-level", default=None)
    server.add_argument("--no-realtime", action="store_true", help="Disable the /ws channel")
    server.set_defaults(func=_server)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)
