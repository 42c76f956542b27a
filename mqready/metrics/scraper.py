"""
Metrics endpoint client.

The exporter is eventually consistent: after it starts, the endpoint may not
be bound yet, and once it answers, the first scrape comes back empty because
the exporter keeps its first collection as a baseline. ``prime()`` hides that
sequence: wait for the endpoint, take one discard scrape, then wait the
settle interval. Only scrapes taken after ``prime()`` are worth asserting on.

Usage:
    with MetricsScraper("localhost", 32768) as scraper:
        scraper.prime()
        samples = scraper.scrape()
"""

from __future__ import annotations

import time
from typing import Callable

import httpx

from mqready.core.config import Settings, get_settings
from mqready.core.logging import get_logger
from mqready.metrics.exposition import MetricSample, parse_exposition
from mqready.services.polling import PollResult, poll_until

logger = get_logger("metrics")


class MetricsScraper:
    """HTTP client for one metrics endpoint."""

    def __init__(
        self,
        host: str,
        port: int,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.host = host
        self.port = port
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.settings.scrape_timeout)
        self._sleep = sleep
        self._clock = clock
        self.scrape_count = 0

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.settings.metrics_path}"

    def retarget(self, host: str, port: int) -> None:
        """Point at a new address, e.g. after a container restart remapped the port."""
        if (host, port) != (self.host, self.port):
            logger.info(f"Metrics endpoint moved {self.host}:{self.port} -> {host}:{port}")
        self.host = host
        self.port = port

    def is_up(self) -> bool:
        """One readiness attempt. Transport errors propagate to the poller."""
        response = self._client.get(self.url)
        if not response.is_success:
            logger.debug(f"{self.url} answered HTTP {response.status_code}")
        return response.is_success

    def wait_for_ready(
        self,
        interval: float | None = None,
        deadline: float | None = None,
    ) -> PollResult[bool]:
        """Block until the endpoint answers with a 2xx, whatever the body.

        Raises PollDeadlineExceeded when the deadline passes first.
        """
        return poll_until(
            self.is_up,
            interval=interval or self.settings.poll_interval,
            deadline=deadline or self.settings.poll_deadline,
            description=f"metrics endpoint {self.url}",
            transient=(httpx.TransportError,),
            clock=self._clock,
            sleep=self._sleep,
        )

    def scrape(self) -> list[MetricSample]:
        """Fetch and parse the current snapshot."""
        response = self._client.get(self.url)
        response.raise_for_status()
        self.scrape_count += 1
        samples = parse_exposition(response.text)
        logger.debug(f"Scrape #{self.scrape_count} of {self.url}: {len(samples)} sample(s)")
        return samples

    def discard(self) -> int:
        """Take the baseline scrape. Its body is never parsed or asserted on."""
        response = self._client.get(self.url)
        self.scrape_count += 1
        logger.info(
            f"Discarded baseline scrape #{self.scrape_count} "
            f"(HTTP {response.status_code}, {len(response.content)} bytes)"
        )
        return len(response.content)

    def settle(self, seconds: float | None = None) -> None:
        seconds = self.settings.settle_interval if seconds is None else seconds
        if seconds > 0:
            logger.info(f"Waiting {seconds:.0f}s for the exporter to collect")
            self._sleep(seconds)

    def prime(
        self,
        settle: float | None = None,
        on_step: Callable[[str, str], None] | None = None,
    ) -> PollResult[bool]:
        """Wait for readiness, discard the baseline scrape, then settle.

        ``on_step(name, detail)`` is called before each of the three steps.
        """
        settle = self.settings.settle_interval if settle is None else settle
        step = on_step or (lambda name, detail: None)

        step("wait_metrics_ready", self.url)
        result = self.wait_for_ready()
        step("discard_scrape", "")
        self.discard()
        step("settle", f"{settle:.0f}s")
        self.settle(settle)
        return result

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "MetricsScraper":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
