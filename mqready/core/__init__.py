"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings
from .exceptions import (
    ContainerOperationError,
    ContainerStateError,
    ExpositionParseError,
    MetricShapeError,
    MqReadyError,
    PollDeadlineExceeded,
    SignalReadError,
)
from .logging import LoggerAdapter, get_logger, setup_logging


__all__ = [
    "ContainerOperationError",
    "ContainerStateError",
    "ExpositionParseError",
    "LoggerAdapter",
    "MetricShapeError",
    "MqReadyError",
    "PollDeadlineExceeded",
    "Settings",
    "SignalReadError",
    "get_logger",
    "get_settings",
    "setup_logging",
]
