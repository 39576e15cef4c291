"""Structured system logger.

Log calls pass a dict as the message:

    logger.warning(
        {
            "event": "ephemeral_secret_generated",
            "message": "No key material configured; generated a random secret",
            "component": "auth_engine",
        }
    )

JsonFormatter renders each record as one JSON line with ISO 8601 time and
level added. Plain string messages are wrapped as {"message": ...}.
"""

from __future__ import annotations

__all__ = [
    "AUDIT_LOGGER_NAME",
    "SYSTEM_LOGGER_NAME",
    "JsonFormatter",
    "configure_system_logging",
    "get_system_logger",
]

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

SYSTEM_LOGGER_NAME = "jwt_engine.system"
AUDIT_LOGGER_NAME = "jwt_engine.audit"


class JsonFormatter(logging.Formatter):
    """Format dict-message log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
        }
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()

        if record.exc_info and "stacktrace" not in entry:
            entry["stacktrace"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def get_system_logger() -> logging.Logger:
    """Get the jwt-engine system logger."""
    return logging.getLogger(SYSTEM_LOGGER_NAME)


def configure_system_logging(
    level: int | str = logging.INFO,
    log_path: Path | None = None,
) -> logging.Logger:
    """Attach a JSON handler to the jwt-engine loggers.

    Safe to call more than once; existing jwt-engine handlers are replaced.

    Args:
        level: Logging level for system and audit loggers.
        log_path: JSONL file to write to, or None for stderr.

    Returns:
        The configured system logger.
    """
    handler: logging.Handler
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.set_name("jwt_engine")

    for name in (SYSTEM_LOGGER_NAME, AUDIT_LOGGER_NAME):
        logger = logging.getLogger(name)
        for existing in list(logger.handlers):
            if existing.get_name() == "jwt_engine":
                logger.removeHandler(existing)
                existing.close()
        logger.addHandler(handler)
        logger.setLevel(level)

    return get_system_logger()
