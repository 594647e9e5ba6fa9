"""Console and JSON audit logging for the tracker."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Optional, Union

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
LOG_DIR: Final[Path] = Path("artifacts") / "logs"
LOG_PATH: Final[Path] = LOG_DIR / "tasktrack.log"
JSON_ENV_FLAG: Final[str] = "TASKTRACK_JSON_LOGS"
LEVEL_ENV_FLAG: Final[str] = "TASKTRACK_LOG_LEVEL"


class JsonAuditFormatter(logging.Formatter):
    """Format log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        payload = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    """Pick the level from the argument, then the environment, then the default."""

    env_level = os.environ.get(LEVEL_ENV_FLAG)
    if isinstance(level, int):
        return int(level)
    if isinstance(level, str) and level.strip():
        candidate = level.strip().upper()
    elif env_level:
        candidate = env_level.strip().upper()
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


def _ensure_console_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_tasktrack_console", False):
            handler.setLevel(level)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    stream_handler._tasktrack_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def _ensure_json_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_tasktrack_json", False):
            handler.setLevel(level)
            return
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    json_handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    json_handler.setLevel(level)
    json_handler.setFormatter(JsonAuditFormatter())
    json_handler._tasktrack_json = True  # type: ignore[attr-defined]
    logger.addHandler(json_handler)


def setup_logger(
    name: str = "tasktrack",
    json_format: bool = False,
    level: Optional[Union[str, int]] = None,
) -> logging.Logger:
    """Configure and return a logger; repeated calls never duplicate handlers."""

    resolved_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved_level)
    # Keep propagating so capture handlers such as pytest's caplog still see records.
    logger.propagate = True
    _ensure_console_handler(logger, resolved_level)
    if _json_logging_enabled(json_format):
        _ensure_json_handler(logger, resolved_level)
    return logger


__all__ = ["JsonAuditFormatter", "setup_logger", "LOG_PATH"]
