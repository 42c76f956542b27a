"""
Lifecycle-aware metrics verification.

A scenario owns one started container and drives it through
start -> metrics ready -> [disruption] -> metrics ready. After every start
or disruption the same sequence repeats: wait for the endpoint, take the
discard scrape, settle, and only then scrape for real.

Usage:
    with run_scenario(runtime, spec, name="container_restart") as scenario:
        scenario.bring_up()
        scenario.assert_metrics()
        scenario.restart_container()
        scenario.assert_metrics()
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Iterator, Sequence

from mqready.container.lifecycle import ContainerHandle, ManagedContainer
from mqready.container.runtime import ContainerRuntime, ContainerSpec
from mqready.core.config import Settings, get_settings
from mqready.core.exceptions import MetricShapeError, MqReadyError
from mqready.core.logging import LoggerAdapter, get_logger, scenario_var
from mqready.harness.report import ScenarioReport, ScenarioStep
from mqready.metrics.exposition import MetricSample
from mqready.metrics.scraper import MetricsScraper
from mqready.metrics.validators import ValidationReport, check_non_empty, validate_samples
from mqready.services.polling import poll_until

logger = get_logger("harness")


class MetricsScenario:
    """Sequential steps against one ManagedContainer."""

    def __init__(
        self,
        container: ManagedContainer,
        settings: Settings | None = None,
        scraper: MetricsScraper | None = None,
        name: str = "scenario",
        qmgr_name: str = "qm1",
        service_user: str = "mqm",
        readiness_command: Sequence[str] | None = ("chkmqready",),
        readiness_interval: float = 1.0,
        readiness_deadline: float = 120.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.container = container
        self.settings = settings or get_settings()
        self.name = name
        self.qmgr_name = qmgr_name
        self.service_user = service_user
        self.readiness_command = list(readiness_command) if readiness_command else None
        self.readiness_interval = readiness_interval
        self.readiness_deadline = readiness_deadline
        self._sleep = sleep
        self._clock = clock
        self._scraper = scraper
        self.started_at = datetime.now(UTC)
        self.steps: list[ScenarioStep] = []
        self.last_samples: list[MetricSample] = []
        self.last_report: ValidationReport | None = None
        self.log = LoggerAdapter(logger, {"scenario": name})

    @property
    def scraper(self) -> MetricsScraper:
        handle = self.container.handle
        if self._scraper is None:
            self._scraper = MetricsScraper(
                handle.host,
                handle.metrics_port,
                settings=self.settings,
                sleep=self._sleep,
                clock=self._clock,
            )
        else:
            self._scraper.retarget(handle.host, handle.metrics_port)
        return self._scraper

    def _step(self, name: str, detail: str = "") -> None:
        self.steps.append(ScenarioStep(name=name, at=datetime.now(UTC), detail=detail))
        self.log.info(f"{name}{': ' + detail if detail else ''}", extra={"step": name})

    def wait_for_container_ready(self) -> None:
        """Poll the in-container readiness command until it exits 0."""
        if not self.readiness_command:
            return
        self._step("wait_container_ready", " ".join(self.readiness_command))
        poll_until(
            lambda: self.container.exec(self.readiness_command)[0] == 0,
            interval=self.readiness_interval,
            deadline=self.readiness_deadline,
            description=f"container {self.container.handle.short_id} readiness",
            transient=(),
            clock=self._clock,
            sleep=self._sleep,
        )

    def prime_metrics(self, settle: float | None = None) -> None:
        """Wait for the endpoint, discard the baseline scrape, settle."""
        self.scraper.prime(settle, on_step=self._step)

    def bring_up(self, settle: float | None = None) -> ContainerHandle:
        """Gate on container readiness, then prime the metrics endpoint."""
        self.wait_for_container_ready()
        self.prime_metrics(settle)
        return self.container.handle

    def scrape(self) -> list[MetricSample]:
        self.last_samples = self.scraper.scrape()
        return self.last_samples

    def validate(self, samples: Sequence[MetricSample] | None = None) -> ValidationReport:
        samples = self.last_samples if samples is None else samples
        self.last_report = validate_samples(
            samples,
            suffixes=self.settings.approved_metric_suffixes,
            required_labels=self.settings.required_metric_labels,
        )
        return self.last_report

    def assert_metrics(self) -> list[MetricSample]:
        """Scrape and require non-empty, approved suffixes and required labels."""
        samples = self.scrape()
        report = self.validate(samples)
        self._step("assert_metrics", report.format().splitlines()[0])
        report.raise_for_violations()
        return samples

    def assert_non_empty(self) -> list[MetricSample]:
        samples = self.scrape()
        violations = check_non_empty(samples)
        self._step("assert_non_empty", f"{len(samples)} sample(s)")
        if violations:
            raise MetricShapeError(violations)
        return samples

    def restart_container(self, settle: float | None = None) -> ContainerHandle:
        """Stop and start the same container, then repeat the readiness sequence."""
        self._step("restart_container")
        self.container.restart()
        return self.bring_up(settle)

    def restart_service(self, settle: float | None = None) -> ContainerHandle:
        """Stop and start the queue manager inside the running container.

        The exporter loses its upstream connection and has to recover
        without the container being touched.
        """
        self._step("stop_queue_manager", self.qmgr_name)
        self.container.exec_checked(["endmqm", "-w", self.qmgr_name], user=self.service_user)
        self._step("start_queue_manager", self.qmgr_name)
        self.container.exec_checked(["strmqm", self.qmgr_name], user=self.service_user)
        grace = self.settings.service_restart_grace
        if grace > 0:
            self._sleep(grace)
        self.prime_metrics(settle)
        return self.container.handle

    def rapid_fire(self, count: int = 30, pause: float = 1.0) -> int:
        """Scrape repeatedly at a short pause. Returns the number of scrapes."""
        self._step("rapid_fire", f"{count} scrapes, {pause}s apart")
        for _ in range(count):
            self.scraper.scrape()
            self._sleep(pause)
        return count

    def slow_poll(self, count: int = 2, pause: float = 30.0) -> list[list[MetricSample]]:
        """Scrape a few times with long gaps; every scrape must be non-empty."""
        self._step("slow_poll", f"{count} scrapes, {pause}s apart")
        results = []
        for _ in range(count):
            self._sleep(pause)
            results.append(self.assert_non_empty())
        return results

    def build_report(self, error: BaseException | None = None, log_tail: int = 100) -> ScenarioReport:
        report = ScenarioReport(
            scenario=self.name,
            started_at=self.started_at,
            finished_at=datetime.now(UTC),
            container_id=self.container.container_id,
            image=self.container.spec.image,
            steps=list(self.steps),
            scrape_count=self._scraper.scrape_count if self._scraper else 0,
            last_sample_keys=[s.key for s in self.last_samples],
        )
        if self.last_report is not None:
            report.violations = [str(v) for v in self.last_report.violations]
        if isinstance(error, MqReadyError):
            report.error = error.to_dict()
        elif error is not None:
            report.error = {"error": type(error).__name__, "message": str(error)}
        try:
            report.container_logs = self.container.logs(tail=log_tail).splitlines()
        except MqReadyError as e:
            report.container_logs = [f"[ERROR FETCHING LOGS: {e}]"]
        return report

    def close(self) -> None:
        if self._scraper is not None:
            self._scraper.close()


@contextmanager
def run_scenario(
    runtime: ContainerRuntime,
    spec: ContainerSpec,
    name: str = "scenario",
    settings: Settings | None = None,
    host: str = "localhost",
    report_dir: Path | str | None = "test-results/scenario-reports",
    **scenario_kwargs,
) -> Iterator[MetricsScenario]:
    """
    Run one scenario in its own container.

    The container is removed on every exit path. When the body raises, a
    ScenarioReport is saved (before removal, so the log tail is still
    available) and the original exception propagates.
    """
    settings = settings or get_settings()
    token = scenario_var.set(name)
    try:
        with ManagedContainer(
            runtime, spec, metrics_port=settings.metrics_port, host=host
        ) as container:
            scenario = MetricsScenario(container, settings=settings, name=name, **scenario_kwargs)
            try:
                yield scenario
            except Exception as e:
                if report_dir is not None:
                    try:
                        path = scenario.build_report(e).save(report_dir)
                    except OSError as report_error:
                        scenario.log.error(f"Could not write report for {name}: {report_error}")
                    else:
                        scenario.log.error(f"Scenario {name} failed, report written to {path}")
                raise
            finally:
                scenario.close()
    finally:
        scenario_var.reset(token)
