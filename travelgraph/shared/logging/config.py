"""
Structured logging configuration.

Provides JSON-formatted logging for session state transitions.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from travelgraph.shared.errors import error_kind


class StructuredFormatter(logging.Formatter):
    """
    Formatter that renders log records as single-line JSON.

    Each entry carries timestamp, level, logger name and message, plus the
    ``extra`` payload and exception text when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra"):
            log_entry["extra"] = record.extra

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    logger_name: str = "travelgraph",
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file. If not provided, logs to stderr only.
        logger_name: Name for the logger instance.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.handlers = []

    formatter = StructuredFormatter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def summarize_state(state: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the routing-relevant fields of a conversation state."""
    queue = state.get("task_queue") or {}
    return {
        "stage": state.get("stage"),
        "cursor": queue.get("cursor"),
        "task_count": len(queue.get("tasks") or []),
        "missing_fields": state.get("missing_fields"),
        "error_kind": error_kind(state.get("last_error")),
        "message_count": len(state.get("messages") or []),
        "done": state.get("done"),
    }


def log_state_transition(
    event: str,
    state: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a session state transition event.

    Args:
        event: Name of the event (e.g., "suspended", "completed")
        state: Current state dictionary (key fields are extracted)
        extra: Additional context to include in the log
        logger: Logger instance to use. If not provided, uses default.
    """
    if logger is None:
        logger = logging.getLogger("travelgraph")

    log_data = {
        "event": event,
        "state_summary": summarize_state(state),
    }
    if extra:
        log_data["extra"] = extra

    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        "",
        0,
        f"State transition: {event}",
        args=(),
        exc_info=None,
    )
    record.extra = log_data

    logger.handle(record)
