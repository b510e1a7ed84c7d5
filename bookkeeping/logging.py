"""Structured logging helpers shared by the bookkeeping backend."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Final

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
ROOT_LOGGER: Final[str] = "bookkeeping"
JSON_ENV_FLAG: Final[str] = "BOOKKEEPING_JSON_LOGS"
LEVEL_ENV_FLAG: Final[str] = "BOOKKEEPING_LOG_LEVEL"

_REQUEST_FIELDS: Final[tuple[str, ...]] = ("method", "path", "status_code")


class JsonLogFormatter(logging.Formatter):
    """Format log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload: dict[str, object] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
        }
        for field in _REQUEST_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        elapsed = _coerce_number(getattr(record, "process_time_ms", None))
        if elapsed is not None:
            payload["process_time_ms"] = elapsed
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _coerce_number(value: object) -> float | None:
    if value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _resolve_level(level: str | int | None) -> int:
    """Pick the log level from the environment, then the argument, then INFO."""

    env_level = os.environ.get(LEVEL_ENV_FLAG)
    if env_level:
        candidate = env_level.strip().upper()
    elif isinstance(level, str):
        candidate = level.strip().upper()
    elif isinstance(level, int):
        return int(level)
    else:
        candidate = DEFAULT_LEVEL
    resolved = logging.getLevelName(candidate)
    return int(resolved) if isinstance(resolved, int) else logging.INFO


def _json_logging_enabled(explicit: bool) -> bool:
    if explicit:
        return True
    value = os.environ.get(JSON_ENV_FLAG)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _ensure_console_handler(logger: logging.Logger, level: int, json_format: bool) -> None:
    formatter: logging.Formatter = JsonLogFormatter() if json_format else logging.Formatter(CONSOLE_FORMAT)
    for handler in logger.handlers:
        if getattr(handler, "_bookkeeping_console", False):
            handler.setLevel(level)
            handler.setFormatter(formatter)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    stream_handler._bookkeeping_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def setup_logger(
    name: str,
    json_format: bool = False,
    level: str | int | None = None,
) -> logging.Logger:
    """Configure and return a logger for a bookkeeping module.

    Only the package root logger owns a console handler; child loggers
    propagate to it (and further up, so ``caplog`` captures their records).
    """

    resolved_level = _resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(resolved_level)
    root.propagate = True
    _ensure_console_handler(root, resolved_level, _json_logging_enabled(json_format))
    logger = logging.getLogger(name)
    if logger is not root:
        logger.setLevel(resolved_level)
        logger.propagate = True
    return logger


def configure_logging(json_logs: bool, level: str | int | None = None) -> None:
    """Reconfigure every existing ``bookkeeping`` logger, e.g. from the CLI."""

    if json_logs:
        os.environ[JSON_ENV_FLAG] = "1"
    else:
        os.environ.pop(JSON_ENV_FLAG, None)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if not name.startswith(f"{ROOT_LOGGER}."):
            continue
        setup_logger(name, json_format=json_logs, level=level)
    setup_logger(ROOT_LOGGER, json_format=json_logs, level=level)


__all__ = ["JsonLogFormatter", "setup_logger", "configure_logging"]
