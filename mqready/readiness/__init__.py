"""Readiness signal and composite readiness probe."""

from mqready.readiness.probe import (
    NetworkProbe,
    ReadinessProber,
    check_ready,
    tcp_probe,
)
from mqready.readiness.flag import FileReadinessSignal, ReadinessSignalReader

__all__ = [
    "FileReadinessSignal",
    "NetworkProbe",
    "ReadinessProber",
    "ReadinessSignalReader",
    "check_ready",
    "tcp_probe",
]
