#!/usr/bin/env python
"""
chkmqready - container readiness check for the queue manager.

Exits 0 when configuration has completed and the listener accepts
connections, 1 otherwise. Prints nothing; the exit status is the whole
interface. Retrying is left to whatever invokes it (the container runtime's
readiness or health check).
"""

from __future__ import annotations

from pydantic import ValidationError

from mqready.core.exceptions import SignalReadError
from mqready.readiness.probe import ReadinessProber


def main() -> int:
    # Settings are read here, not at import, so bad MQREADY_* values map to 1
    try:
        ready = ReadinessProber.from_settings().check()
    except (SignalReadError, ValidationError):
        return 1
    return 0 if ready else 1


if __name__ == "__main__":
    raise SystemExit(main())
