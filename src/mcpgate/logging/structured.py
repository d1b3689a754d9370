"""Structured logging for stdlib loggers.

Stores and HTTP handlers log through ``logging.getLogger(__name__)``;
``configure_logging`` routes those records to stderr as JSON lines or plain text.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from mcpgate.types import LogFormat, LogLevel

_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter: timestamp, level, component, message plus any ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: LogLevel = LogLevel.INFO, fmt: LogFormat = LogFormat.COLORED) -> None:
    """Configure the ``mcpgate`` stdlib logger hierarchy.

    Args:
        level: Minimum level to emit
        fmt: JSON lines or human-readable text
    """
    root = logging.getLogger("mcpgate")
    root.setLevel(_LEVELS.get(level, logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if fmt == LogFormat.JSON:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
