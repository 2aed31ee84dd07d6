"""authgate logging setup.

Two output styles: JSON lines for deployments, a readable single-line format
for local work. Bearer tokens are masked in every record before it is
formatted.
"""

import json
import logging
import re
import sys
from typing import Literal

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Record attributes that are set by logging itself, not passed via ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}

_BEARER_RE = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-_=]+(\.[A-Za-z0-9\-_=]+){0,2}")

_QUIET_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def redact(text: str) -> str:
    """Mask bearer token values in free text."""
    return _BEARER_RE.sub(r"\1[REDACTED]", text)


class RedactingFilter(logging.Filter):
    """Replaces bearer tokens in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; json.dumps() escapes every field.

    Values passed through ``extra=`` (for example ``user_id``) become
    top-level keys.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry.setdefault(key, value)
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _build_handler(format_type: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RedactingFilter())
    return handler


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable output
    """
    numeric_level = getattr(logging, level.upper())

    root = logging.getLogger()
    root.handlers = [_build_handler(format_type)]
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL echo only when debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    )

    logging.getLogger("authgate").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``authgate`` namespace."""
    return logging.getLogger(f"authgate.{name}")
