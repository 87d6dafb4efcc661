"""
Logging setup for the router.

Text logging by default; JSON lines when VALET_LOG_FORMAT=json so the
router log can be ingested by other tools. Request IDs attached through
``extra={"request_id": ...}`` are carried into the JSON entries.
"""

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_RESERVED_FIELDS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
    "request_id",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Fields: timestamp, level, logger, message, plus request_id, file,
    function and exception when available, and any ``extra`` values.
    """

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z"

        log_entry: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

        if record.pathname:
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        if record.funcName and record.funcName != "<module>":
            log_entry["function"] = record.funcName

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_FIELDS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def is_json_logging_enabled() -> bool:
    """True if VALET_LOG_FORMAT=json."""
    return os.getenv("VALET_LOG_FORMAT", "text").lower() == "json"


def setup_logging(level: str | None = None, log_file: str | None = None, force: bool = True) -> None:
    """
    Configure the root logger from arguments or environment.

    Environment variables:
    - VALET_LOG_FORMAT: "json" or "text" (default: text)
    - VALET_LOG_LEVEL: Log level (default: INFO)
    - VALET_LOG_FILE: Optional log file path
    """
    if level is None:
        level = os.getenv("VALET_LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("VALET_LOG_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}", file=sys.stderr)

    if is_json_logging_enabled():
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=force)


def log_requests_enabled() -> bool:
    """True if per-request access logging is switched on (VALET_LOG_REQUESTS)."""
    return os.getenv("VALET_LOG_REQUESTS", "").lower() in {"1", "true", "yes", "on"}
