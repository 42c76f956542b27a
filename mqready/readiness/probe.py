"""
Composite readiness check: configuration signal AND listener reachability.

The network probe is only attempted once the signal is set, so a listener
that comes up early can never make the check report ready on its own.
"""

from __future__ import annotations

import socket
from typing import Callable

from mqready.core.config import Settings, get_settings
from mqready.core.logging import get_logger
from mqready.readiness.flag import FileReadinessSignal, ReadinessSignalReader

logger = get_logger("readiness")

# A probe answers "is the listener accepting connections right now"
NetworkProbe = Callable[[], bool]


def tcp_probe(host: str, port: int, timeout: float | None = None) -> bool:
    """Open and immediately close a TCP connection.

    ``timeout=None`` leaves the platform default connect timeout in place.
    Connection failures are a negative result, not an error.
    """
    try:
        conn = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        logger.debug(f"Probe {host}:{port} failed: {e}")
        return False
    conn.close()
    return True


def check_ready(signal: ReadinessSignalReader, probe: NetworkProbe) -> bool:
    """Return True only when the signal is set and the probe succeeds.

    SignalReadError from the reader propagates to the caller.
    """
    if not signal.is_set():
        return False
    return probe()


class ReadinessProber:
    """
    Reusable readiness check bound to one signal and one listener.

    Holds no state between calls, so repeated checks against unchanged
    external state always give the same answer.

    Usage:
        prober = ReadinessProber.from_settings()
        if prober.check():
            ...
    """

    def __init__(
        self,
        signal: ReadinessSignalReader,
        host: str = "127.0.0.1",
        port: int = 1414,
        probe: NetworkProbe | None = None,
    ):
        self.signal = signal
        self.host = host
        self.port = port
        self._probe = probe or (lambda: tcp_probe(self.host, self.port))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ReadinessProber":
        settings = settings or get_settings()
        return cls(
            signal=FileReadinessSignal(settings.ready_file),
            host=settings.listener_host,
            port=settings.listener_port,
        )

    def check(self) -> bool:
        return check_ready(self.signal, self._probe)
