"""
Logging setup.

JSON lines by default (one object per record), plain text for local runs.
Call `setup_logging()` once from the FastAPI lifespan.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

# Extra attributes copied into JSON records when a log call passes them.
_EXTRA_FIELDS = ("user_id", "path", "method", "error_kind", "backend")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            value = record.__dict__.get(key)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def log_format() -> str:
    return os.environ.get("LOG_FORMAT", "json").strip().lower() or "json"


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    level = (level or log_level()).upper()
    fmt = fmt or log_format()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    # Replace handlers from a previous call (reloads, repeated lifespans in tests).
    for existing in list(root.handlers):
        if getattr(existing, "_user_directory", False):
            root.removeHandler(existing)
    handler._user_directory = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))
