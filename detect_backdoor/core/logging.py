"""Structured JSON logging configuration.

The rendered report owns stdout, so log output goes to stderr, one JSON
object per line:

    {"ts": "2025-03-01T12:00:00+00:00", "level": "INFO", "logger": "detect_backdoor.services.batch_service", "msg": "...", ...}
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import TextIO


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        # Package URL of the target being processed, attached via extra={}
        if hasattr(record, "target"):
            payload["target"] = record.target

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure the root logger with JSON output.

    ``level`` wins over the ``LOG_LEVEL`` env var (default ``INFO``).
    ``stream`` defaults to stderr.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(numeric_level)

    root.handlers.clear()
    root.addHandler(handler)

    # Quiet noisy third-party loggers
    for noisy in ("httpcore", "httpx", "git.cmd", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
