"""Python logging setup for httpgauge.

Log calls attach context through ``extra=`` (``target``, ``rule``);
KeyValueFormatter appends those attributes to the message as ``key=value``
pairs.
"""

import logging
import sys
from typing import TextIO

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends extra record attributes as key=value pairs.

    Example:
        ```python
        logger.warning("Rule failed", extra={"target": "github", "rule": "stars"})
        # ... WARNING  httpgauge.core.runner: Rule failed target=github rule=stars
        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _STANDARD_LOGRECORD_ATTRS
            and not key.startswith("_")
            and isinstance(value, (str, int, float, bool))
        ]
        if not extras:
            return message
        first_line, newline, rest = message.partition("\n")
        return f"{first_line} {' '.join(extras)}{newline}{rest}"


def configure_logging(level: str = "info", stream: TextIO | None = None) -> logging.Handler:
    """Install a KeyValueFormatter stream handler on the httpgauge logger.

    Args:
        level: One of debug, info, warning, error, critical.
        stream: Output stream (default: stderr).

    Returns:
        The installed handler.

    Raises:
        ValueError: Unknown level.
    """
    if level.lower() not in LOG_LEVELS:
        raise ValueError(f"invalid log level {level!r}")
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(KeyValueFormatter(DEFAULT_FORMAT))
    package_logger = logging.getLogger("httpgauge")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False
    return handler
