"""
Logging setup for the chat server.

Console output is human-readable and tagged with the correlation ID of the
HTTP request or WebSocket connection being handled. Errors are additionally
written as JSON lines to LOG_FILE_PATH so they can be inspected after a
restart.
"""

import json
import logging
import os
import sys
from typing import Any

from socketchat.middlewares.correlation_id import get_correlation_id
from socketchat.settings import app_settings
from socketchat.uvicorn_filters import ExcludeMetricsFilter

# Anything on a record beyond these came in through `extra=`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "correlation_id"}

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class StructuredJSONFormatter(logging.Formatter):
    """
    Renders each record as one JSON object per line.

    Besides the message and its origin, the object carries the deployment
    environment, the correlation ID (as `request_id`) when one is bound, any
    `extra` fields and the formatted traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "environment": app_settings.ENVIRONMENT,
        }

        request_id = get_correlation_id()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter.

    INFO lines are kept short; every other level also shows where the record
    was emitted.
    """

    SHORT_FMT = "%(asctime)s - [%(correlation_id)s] %(levelname)s: %(message)s"
    LONG_FMT = (
        "%(asctime)s - [%(correlation_id)s] %(levelname)s: "
        "%(module)s.%(funcName)s:%(lineno)d - %(message)s"
    )

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._short = logging.Formatter(self.SHORT_FMT, datefmt=_DATE_FORMAT)
        self._long = logging.Formatter(self.LONG_FMT, datefmt=_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = get_correlation_id() or "-"
        if record.levelno == logging.INFO:
            return self._short.format(record)
        return self._long.format(record)


def _error_file_handler(path: str) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    handler = logging.FileHandler(path)
    handler.setLevel(logging.ERROR)
    handler.setFormatter(StructuredJSONFormatter())
    return handler


def setup_logging() -> logging.Logger:
    """
    Configure the `socketchat` logger.

    Sets up:
    - A stdout handler using HumanReadableFormatter
    - A JSON error log at LOG_FILE_PATH (skipped if it cannot be created)
    - ExcludeMetricsFilter on uvicorn's access log

    Returns:
        The configured logger.
    """
    chat_logger = logging.getLogger("socketchat")
    chat_logger.setLevel(app_settings.LOG_LEVEL.upper())
    chat_logger.propagate = False

    # Reconfiguring on reload must not stack handlers
    chat_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(HumanReadableFormatter())
    chat_logger.addHandler(console)

    try:
        chat_logger.addHandler(_error_file_handler(app_settings.LOG_FILE_PATH))
    except OSError as e:
        chat_logger.warning(f"Error log file disabled: {e}")

    logging.getLogger("uvicorn.access").addFilter(ExcludeMetricsFilter())

    # Keep test output clean
    if os.path.basename(sys.argv[0]) == "pytest":
        logging.disable(logging.ERROR)

    return chat_logger


logger = setup_logging()
