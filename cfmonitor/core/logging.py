"""CF Monitor — Structured JSON Logging."""

import logging
import json
import sys
from datetime import datetime, timezone
from cfmonitor.config import settings


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    ``account`` / ``zone`` / ``status_code`` / ``duration_ms`` passed through
    ``extra=`` become top-level keys when present.
    """

    context_fields = ("account", "zone", "status_code", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {
                key: getattr(record, key)
                for key in self.context_fields
                if getattr(record, key, None) is not None
            }
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Return ``cfmonitor.<name>`` with a stdout JSON handler."""
    logger = logging.getLogger(f"cfmonitor.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
