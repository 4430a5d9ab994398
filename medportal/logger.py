"""
Structured logging for the medportal AI core.

Every record is written to stdout as one JSON object. Callers attach
fields as keyword arguments; message text and secrets are never passed in.
The level comes from MEDPORTAL_LOG_LEVEL (default INFO).
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOGGER_NAME = "medportal"
LEVEL_ENV_VAR = "MEDPORTAL_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    """Render a LogRecord and its extra fields as a JSON line."""

    # LogRecord internals that are not caller-supplied fields
    STANDARD_ATTRS = frozenset(
        vars(logging.LogRecord("", 0, "", 0, "", None, None))
    ) | {"message", "asctime"}

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for key, value in record.__dict__.items():
            if key in self.STANDARD_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _configure(log: logging.Logger) -> logging.Logger:
    level = logging.getLevelName(os.getenv(LEVEL_ENV_VAR, "INFO").upper())
    log.setLevel(level if isinstance(level, int) else logging.INFO)
    # Re-imports must not stack a second stdout handler.
    if not any(isinstance(h.formatter, JsonFormatter) for h in log.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        log.addHandler(handler)
    return log


_base_logger = _configure(logging.getLogger(LOGGER_NAME))


class ComponentLogger:
    """Tags every record with its component and, when given, a request id."""

    def __init__(self, component: str):
        self.component = component

    def _log(self, level, msg, request_id=None, **fields):
        extra = {"component": self.component}
        if request_id:
            extra["request_id"] = request_id
        extra.update(fields)
        _base_logger.log(level, msg, extra=extra)

    def debug(self, msg, request_id=None, **fields):
        self._log(logging.DEBUG, msg, request_id, **fields)

    def info(self, msg, request_id=None, **fields):
        self._log(logging.INFO, msg, request_id, **fields)

    def warning(self, msg, request_id=None, **fields):
        self._log(logging.WARNING, msg, request_id, **fields)

    def error(self, msg, request_id=None, **fields):
        self._log(logging.ERROR, msg, request_id, **fields)


def get_logger(component: str = "core") -> ComponentLogger:
    return ComponentLogger(component)
