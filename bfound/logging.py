"""JSON log lines for the CLI and the HTTP app.

Each record becomes one JSON object carrying the service name and environment
from settings, plus anything passed through ``extra=``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from bfound.config import get_settings

# LogRecord attributes that are plumbing, not payload
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        settings = get_settings()
        when = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, Any] = {
            "timestamp": when.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "service": settings.service_name,
            "environment": settings.environment,
            "message": record.getMessage(),
        }
        line.update({k: v for k, v in vars(record).items() if k not in _RECORD_FIELDS and k not in line})
        if record.exc_info and record.exc_info[0] is not None:
            line["error"] = {
                "class": record.exc_info[0].__name__,
                "message": str(record.exc_info[1])[:500],
            }
        return json.dumps(line, ensure_ascii=False, default=repr)


def setup_logging() -> None:
    """Send every logger through one stderr handler at ``settings.log_level``."""
    settings = get_settings()
    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


__all__ = ["setup_logging"]
