"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Optional

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 5000
DATABASE_URL_ENV: Final[tuple[str, ...]] = ("TASKTRACK_DATABASE_URL", "DATABASE_URL")
PORT_ENV: Final[tuple[str, ...]] = ("TASKTRACK_PORT", "PORT")
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


def _first(env: Mapping[str, str], names: tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Configuration for one server process.

    ``database_url`` is an SQLAlchemy URL. Leaving it unset selects the
    disposable in-memory database used for local development.
    """

    database_url: Optional[str] = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    seed_on_startup: bool = True
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        source = os.environ if env is None else env
        raw_port = _first(source, PORT_ENV)
        try:
            port = int(raw_port) if raw_port is not None else DEFAULT_PORT
        except ValueError as exc:
            raise ValueError(f"Invalid port number: {raw_port!r}") from exc
        return cls(
            database_url=_first(source, DATABASE_URL_ENV),
            host=source.get("TASKTRACK_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
            port=port,
            seed_on_startup=_as_bool(source.get("TASKTRACK_SEED"), True),
            log_level=source.get("TASKTRACK_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            json_logs=_as_bool(source.get("TASKTRACK_JSON_LOGS"), False),
        )


__all__ = ["DEFAULT_HOST", "DEFAULT_PORT", "Settings"]
