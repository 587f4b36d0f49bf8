"""Logging configuration for SwipeRec.

Engine modules log through module-level loggers and attach context (user,
product, category, timings) as `extra` fields. Entry points call
setup_logging once to pick how those records are rendered: one JSON object
per line for log aggregation, or plain text for a terminal.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

LOG_FORMATS = ("json", "text")
TEXT_FORMAT = "%(levelname)s: %(message)s"

# LogRecord attributes that are not user-supplied extra fields
STANDARD_ATTRS = set(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render a record and its `extra` context as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with the record's core fields plus every extra field.
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Context passed via extra={...}
        for key, value in record.__dict__.items():
            if key not in STANDARD_ATTRS:
                log_data[key] = value

        # Enums, datetimes and numpy scalars fall back to str
        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure the root logger for an entry point.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for structured output, "text" for plain lines.

    Raises:
        ValueError: If log_level or log_format is unknown.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format}")

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    # Records go to stderr so command output on stdout stays clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
