"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Callable, Sequence

import httpx
import pytest

from mqready.container.runtime import ContainerSpec
from mqready.core.config import Settings
from mqready.core.exceptions import ContainerOperationError


# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with the production timing defaults, independent of the environment."""
    return Settings(
        poll_interval=5.0,
        poll_deadline=60.0,
        settle_interval=15.0,
        service_restart_grace=10.0,
        approved_metric_suffixes=["bytes", "seconds", "percentage", "count", "total"],
        required_metric_labels=["qmgr"],
    )


# =============================================================================
# Exporter
# =============================================================================


GOOD_EXPOSITION = """\
# HELP ibmmq_qmgr_cpu_load_one_minute_percentage CPU load - one minute average
# TYPE ibmmq_qmgr_cpu_load_one_minute_percentage gauge
ibmmq_qmgr_cpu_load_one_minute_percentage{qmgr="qm1"} 0.25
# HELP ibmmq_qmgr_ram_free_bytes RAM free
# TYPE ibmmq_qmgr_ram_free_bytes gauge
ibmmq_qmgr_ram_free_bytes{qmgr="qm1"} 1.048576e+06
# HELP ibmmq_qmgr_mqput_mqput1_total Interval total MQPUT/MQPUT1 count
# TYPE ibmmq_qmgr_mqput_mqput1_total counter
ibmmq_qmgr_mqput_mqput1_total{qmgr="qm1"} 42
"""


class FakeExporter:
    """
    Stand-in for the metrics exporter behind an httpx.MockTransport.

    Refuses connections while down. After every (re)start the first scrape
    returns an empty body, later scrapes return ``body``. Bodies queued in
    ``scripted`` are served first, in order, whatever the generation.
    """

    def __init__(self, body: str = GOOD_EXPOSITION):
        self.body = body
        self.up = False
        self.generation = 0
        self.served_in_generation = 0
        self.bodies_served: list[str] = []
        self.scripted: list[str] = []

    def restart(self) -> None:
        self.up = True
        self.generation += 1
        self.served_in_generation = 0

    def stop(self) -> None:
        self.up = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if not self.up:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.scripted:
            body = self.scripted.pop(0)
        else:
            body = "" if self.served_in_generation == 0 else self.body
        self.served_in_generation += 1
        self.bodies_served.append(body)
        return httpx.Response(200, text=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def exporter() -> FakeExporter:
    return FakeExporter()


# =============================================================================
# Container runtime
# =============================================================================


class FakeRuntime:
    """
    In-memory ContainerRuntime.

    Each start publishes the metrics port on the next host port from
    ``ports``. ``exec_results`` maps a command's first word to a callable
    returning (exit_code, output); unknown commands exit 0.
    """

    def __init__(
        self,
        ports: Sequence[int] = (32768, 32769, 32770, 32771),
        on_start: Callable[[], None] | None = None,
        on_stop: Callable[[], None] | None = None,
    ):
        self.calls: list[tuple] = []
        self.containers: dict[str, str] = {}
        self._ports = list(ports)
        self._current_port: dict[str, int] = {}
        self.on_start = on_start
        self.on_stop = on_stop
        self.exec_results: dict[str, Callable[[], tuple[int, str]]] = {}
        self.fail_on: set[str] = set()
        self.log_text = "starting queue manager\nqueue manager started"

    def _maybe_fail(self, operation: str, container_id: str | None = None) -> None:
        if operation in self.fail_on:
            raise ContainerOperationError(operation, "injected failure", container_id=container_id)

    def create(self, spec: ContainerSpec) -> str:
        self._maybe_fail("create")
        container_id = f"{len(self.containers) + 1:064x}"
        self.containers[container_id] = "created"
        self.calls.append(("create", spec.image))
        return container_id

    def start(self, container_id: str) -> None:
        self._maybe_fail("start", container_id)
        self.containers[container_id] = "running"
        self._current_port[container_id] = self._ports.pop(0)
        self.calls.append(("start", container_id))
        if self.on_start:
            self.on_start()

    def stop(self, container_id: str, timeout: int = 10) -> None:
        self.calls.append(("stop", container_id))
        self._maybe_fail("stop", container_id)
        self.containers[container_id] = "exited"
        self._current_port.pop(container_id, None)
        if self.on_stop:
            self.on_stop()

    def remove(self, container_id: str) -> None:
        self.calls.append(("remove", container_id))
        self._maybe_fail("remove", container_id)
        del self.containers[container_id]

    def exec(self, container_id, cmd, user=None):
        self.calls.append(("exec", list(cmd), user))
        self._maybe_fail("exec", container_id)
        result = self.exec_results.get(cmd[0])
        return result() if result else (0, "")

    def host_port(self, container_id: str, container_port: int) -> int:
        if container_id not in self._current_port:
            raise ContainerOperationError("inspect", "not running", container_id=container_id)
        return self._current_port[container_id]

    def logs(self, container_id: str, tail: int = 50) -> str:
        return self.log_text

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def spec() -> ContainerSpec:
    return ContainerSpec(
        image="example/mq:test",
        environment={"LICENSE": "accept", "MQ_QMGR_NAME": "qm1"},
        ports=[9157],
    )
