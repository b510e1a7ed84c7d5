"""Command-line entry point for running the bookkeeping backend."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import replace

import uvicorn

from .config import load_settings
from .database import Database
from .logging import configure_logging, setup_logger

DESCRIPTION = "Bookkeeping backend"

logger = setup_logger(__name__)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:  # pragma: no cover - argparse validation
        raise argparse.ArgumentTypeError("Port must be an integer") from exc
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError("Port must be between 1 and 65535")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bookkeeping", description=DESCRIPTION)
    parser.add_argument("--log-level", default=None, help="Override the log level (e.g. DEBUG)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default from BOOKKEEPING_HOST)")
    serve.add_argument("--port", type=_port, default=None, help="Listening port (default from PORT)")

    subparsers.add_parser("init-db", help="Create the database tables and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    settings = replace(
        settings,
        log_level=(args.log_level or settings.log_level).upper(),
        json_logs=args.json_logs or settings.json_logs,
    )
    configure_logging(settings.json_logs, settings.log_level)

    if args.command == "init-db":
        database = Database(settings.database_url)
        try:
            database.create_all()
        finally:
            database.dispose()
        logger.info("Tables created")
        return 0

    settings = replace(
        settings,
        host=args.host or settings.host,
        port=args.port or settings.port,
    )
    from .server import create_app

    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
