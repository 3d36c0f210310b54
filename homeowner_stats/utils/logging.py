"""
Logging Utility - Structured JSON Logging

Provides centralized, structured logging configuration for all components.
Supports JSON format for production and human-readable format for development.

Usage:
    from homeowner_stats.utils.logging import setup_logging

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_OUTPUT)
    logger = logging.getLogger(__name__)
    logger.info("Statistics computed", extra={"tenant_id": "acme", "total": 42})
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import orjson

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}

_installed_handler: logging.Handler | None = None


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    output: str = "stdout",
    log_file: str | None = None,
) -> None:
    """Configure application-wide logging.

    Replaces any handlers already installed on the root logger, so calling
    it twice is safe.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('json' or 'text')
        output: Log output ('stdout', 'stderr' or 'file')
        log_file: Path used when output is 'file'

    Raises:
        ValueError: If format_type or output is unknown, or log_file is missing
    """
    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    elif format_type == "text":
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        raise ValueError(f"Unknown log format: {format_type}")

    if output == "stdout":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    elif output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "file":
        if not log_file:
            raise ValueError("log_file is required when output is 'file'")
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
    else:
        raise ValueError(f"Unknown log output: {output}")

    handler.setFormatter(formatter)

    global _installed_handler

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    if _installed_handler is not None:
        _installed_handler.close()

    _installed_handler = handler
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
