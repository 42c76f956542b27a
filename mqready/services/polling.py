"""
Blocking poll-until-ready with a deadline.

One routine serves every "wait for X to come up" in the harness: the metrics
endpoint after a start, the in-container readiness command, and the system
tests' own waits.

Usage:
    from mqready.services.polling import poll_until

    result = poll_until(
        lambda: endpoint_is_up(),
        interval=5.0,
        deadline=60.0,
        description="metrics endpoint",
        transient=(httpx.TransportError,),
    )
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from mqready.core.exceptions import PollDeadlineExceeded
from mqready.core.logging import get_logger

logger = get_logger("polling")

T = TypeVar("T")

# Exceptions that mean "not up yet" unless the caller says otherwise
DEFAULT_TRANSIENT_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
)


@dataclass
class PollResult(Generic[T]):
    """Outcome of a successful poll."""

    value: T
    attempts: int
    elapsed: float


def poll_until(
    probe: Callable[[], T],
    *,
    interval: float,
    deadline: float,
    description: str = "target",
    transient: tuple[type[BaseException], ...] = DEFAULT_TRANSIENT_EXCEPTIONS,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult[T]:
    """
    Call ``probe`` every ``interval`` seconds until it returns a truthy value.

    A probe raising one of ``transient`` counts as "not ready". Anything else
    propagates immediately. When ``deadline`` seconds have passed without
    success, PollDeadlineExceeded is raised. The final sleep is cut short so
    one last attempt lands on the deadline instead of past it.

    Args:
        probe: Zero-argument callable, truthy result means ready
        interval: Seconds between attempts
        deadline: Overall time limit in seconds
        description: Name used in logs and the timeout error
        transient: Exception types treated as "not ready yet"
        clock: Monotonic time source (injectable for tests)
        sleep: Sleep function (injectable for tests)

    Returns:
        PollResult with the probe's truthy value and attempt count
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    if deadline <= 0:
        raise ValueError("deadline must be positive")

    start = clock()
    attempts = 0
    last_error: BaseException | None = None

    while True:
        attempts += 1
        try:
            value = probe()
        except transient as e:
            last_error = e
            logger.debug(f"{description} attempt {attempts} not ready: {e}")
        else:
            if value:
                elapsed = clock() - start
                logger.info(
                    f"{description} ready after {attempts} attempt(s) in {elapsed:.1f}s"
                )
                return PollResult(value=value, attempts=attempts, elapsed=elapsed)
            last_error = None
            logger.debug(f"{description} attempt {attempts} not ready")

        remaining = deadline - (clock() - start)
        if remaining <= 0:
            break
        sleep(min(interval, remaining))

    logger.warning(f"{description} not ready after {deadline:.1f}s ({attempts} attempts)")
    raise PollDeadlineExceeded(description, deadline, attempts, last_error)
