"""Logging configuration for the feed pipeline and its command-line shell."""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LEVEL_ENV = "FEEDKEEPER_LOG_LEVEL"
FORMAT_ENV = "FEEDKEEPER_LOG_FORMAT"
PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Attributes present on every LogRecord; anything else arrived through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Third-party loggers that are chatty at DEBUG level.
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


class StructuredFormatter(logging.Formatter):
    """Emit one JSON object per record, including ``extra`` event fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(name: Optional[str]) -> int:
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Install a single stream handler on the root logger.

    Explicit arguments win over ``FEEDKEEPER_LOG_LEVEL`` and ``FEEDKEEPER_LOG_FORMAT``.
    ``json`` or ``structured`` selects :class:`StructuredFormatter`.
    """

    resolved_level = _resolve_level(level or os.getenv(LEVEL_ENV))
    style = (fmt or os.getenv(FORMAT_ENV, "plain")).lower()

    handler = logging.StreamHandler()
    if style in {"json", "structured"}:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers = [handler]

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))


__all__ = ["configure_logging", "StructuredFormatter"]
