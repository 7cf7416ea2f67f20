"""Console and JSON logging helpers for the budgetbook backend."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Final

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
JSON_ENV_FLAG: Final[str] = "BUDGETBOOK_JSON_LOGS"
LEVEL_ENV_FLAG: Final[str] = "BUDGETBOOK_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload = {
            "timestamp": timestamp,
            "level": record.levelname,
            "source": record.name,
            "message": record.getMessage(),
        }
        method = getattr(record, "method", None)
        if method is not None:
            payload["method"] = method
            payload["path"] = getattr(record, "path", None)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_level(level: str | int | None) -> int:
    """Pick the log level from the environment first, then the argument."""

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
    formatter = JsonFormatter() if json_format else logging.Formatter(CONSOLE_FORMAT)
    for handler in logger.handlers:
        if getattr(handler, "_budgetbook_console", False):
            handler.setLevel(level)
            handler.setFormatter(formatter)
            return
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    stream_handler._budgetbook_console = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)


def setup_logger(
    name: str,
    json_format: bool = False,
    level: str | int | None = None,
) -> logging.Logger:
    """Configure and return a logger for budgetbook modules.

    Calling it twice for the same name reuses the existing console handler, so
    modules may call it at import time without duplicating output.
    """

    resolved_level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved_level)
    # Keep propagation on so that capture handlers (e.g. pytest ``caplog``) see records.
    logger.propagate = True
    _ensure_console_handler(logger, resolved_level, _json_logging_enabled(json_format))
    return logger


__all__ = ["JsonFormatter", "setup_logger"]
