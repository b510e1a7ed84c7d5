"""Runtime settings for the bookkeeping backend read from the process environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_SQLITE_PATH: Final[Path] = Path(__file__).resolve().parent / "bookkeeping.db"
DEFAULT_DATABASE_URL: Final[str] = f"sqlite:///{DEFAULT_SQLITE_PATH}"
DEFAULT_HOST: Final[str] = "0.0.0.0"
DEFAULT_PORT: Final[int] = 8000
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

DATABASE_URL_ENV: Final[str] = "BOOKKEEPING_DATABASE_URL"
FALLBACK_DATABASE_URL_ENV: Final[str] = "DATABASE_URL"
HOST_ENV: Final[str] = "BOOKKEEPING_HOST"
PORT_ENV: Final[str] = "PORT"
LOG_LEVEL_ENV: Final[str] = "BOOKKEEPING_LOG_LEVEL"
JSON_LOGS_ENV: Final[str] = "BOOKKEEPING_JSON_LOGS"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class Settings:
    """Connection string, bind address and logging preferences for one process."""

    database_url: str = DEFAULT_DATABASE_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    json_logs: bool = False


def _parse_port(raw: str) -> int:
    try:
        port = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid {PORT_ENV} value: {raw!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"Invalid {PORT_ENV} value: {raw!r}")
    return port


def _parse_flag(raw: str | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in _TRUTHY


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``).

    ``BOOKKEEPING_DATABASE_URL`` wins over the generic ``DATABASE_URL``; empty
    values are treated as unset.
    """

    env = os.environ if environ is None else environ
    database_url = (
        env.get(DATABASE_URL_ENV, "").strip()
        or env.get(FALLBACK_DATABASE_URL_ENV, "").strip()
        or DEFAULT_DATABASE_URL
    )
    raw_port = env.get(PORT_ENV, "").strip()
    return Settings(
        database_url=database_url,
        host=env.get(HOST_ENV, "").strip() or DEFAULT_HOST,
        port=_parse_port(raw_port) if raw_port else DEFAULT_PORT,
        log_level=(env.get(LOG_LEVEL_ENV, "").strip() or DEFAULT_LOG_LEVEL).upper(),
        json_logs=_parse_flag(env.get(JSON_LOGS_ENV)),
    )


__all__ = ["Settings", "load_settings", "DEFAULT_DATABASE_URL"]
