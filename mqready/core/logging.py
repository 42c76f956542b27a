"""Structured logging configuration with scenario tracking."""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import get_settings


# Context variable for the scenario currently running on this thread
scenario_var: ContextVar[Optional[str]] = ContextVar("scenario", default=None)


def _scenario_of(record: logging.LogRecord) -> Optional[str]:
    return scenario_var.get() or getattr(record, "extra_fields", {}).get("scenario")


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scenario = scenario_var.get()
        if scenario:
            log_data["scenario"] = scenario

        # Context attached through LoggerAdapter
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if get_settings().log_level == "DEBUG":
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def format(self, record: logging.LogRecord) -> str:
        scenario = _scenario_of(record)
        tag = f"[{scenario}] " if scenario else ""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} {record.levelname:8} {tag}{record.name}: {record.getMessage()}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


def setup_logging() -> None:
    """Configure root logging for the harness."""
    settings = get_settings()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, settings.log_level))

    if settings.log_format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)

    # Quiet chatty client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("docker").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the mqready prefix."""
    return logging.getLogger(f"mqready.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that includes the scenario name and extra context.

    Per-call ``extra`` and the adapter's own context end up in the record's
    ``extra_fields``, which StructuredFormatter merges into the JSON line.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        fields = dict(kwargs.get("extra") or {})
        scenario = scenario_var.get()
        if scenario:
            fields["scenario"] = scenario
        if self.extra:
            fields.update(self.extra)
        kwargs["extra"] = {"extra_fields": fields}
        return msg, kwargs
