"""
Scoped container lifecycle.

ManagedContainer walks a container through CREATED -> STARTED -> STOPPED
(-> STARTED ...) -> REMOVED and guarantees removal on every exit path of
its ``with`` block: normal return, assertion failure, poll timeout or any
other exception.

Usage:
    with ManagedContainer(runtime, spec, metrics_port=9157) as container:
        handle = container.handle
        ...
        container.restart()
        handle = container.handle  # port may have changed
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mqready.container.runtime import ContainerRuntime, ContainerSpec
from mqready.core.exceptions import ContainerOperationError, ContainerStateError
from mqready.core.logging import get_logger

logger = get_logger("container.lifecycle")


class ContainerState(Enum):
    """Lifecycle states."""

    PENDING = "pending"  # Not created yet
    CREATED = "created"
    STARTED = "started"
    STOPPED = "stopped"
    REMOVED = "removed"


# operation -> (allowed source states, resulting state)
_TRANSITIONS: dict[str, tuple[frozenset[ContainerState], ContainerState]] = {
    "create": (frozenset({ContainerState.PENDING}), ContainerState.CREATED),
    "start": (
        frozenset({ContainerState.CREATED, ContainerState.STOPPED}),
        ContainerState.STARTED,
    ),
    "stop": (frozenset({ContainerState.STARTED}), ContainerState.STOPPED),
    "remove": (
        frozenset({ContainerState.CREATED, ContainerState.STARTED, ContainerState.STOPPED}),
        ContainerState.REMOVED,
    ),
}


@dataclass(frozen=True)
class ContainerHandle:
    """A running container and where its metrics port is reachable from the host."""

    container_id: str
    host: str
    metrics_port: int

    @property
    def short_id(self) -> str:
        return self.container_id[:12]


class ManagedContainer:
    """Container whose lifetime is bound to a ``with`` block."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        spec: ContainerSpec,
        metrics_port: int,
        host: str = "localhost",
        stop_timeout: int = 10,
    ):
        self.runtime = runtime
        self.spec = spec
        self.metrics_port = metrics_port
        self.host = host
        self.stop_timeout = stop_timeout
        self.state = ContainerState.PENDING
        self.container_id: str | None = None
        self._handle: ContainerHandle | None = None

    def _transition(self, operation: str) -> ContainerState:
        allowed, target = _TRANSITIONS[operation]
        if self.state not in allowed:
            raise ContainerStateError(
                f"Cannot {operation} container in state '{self.state.value}'",
                details={"operation": operation, "state": self.state.value},
            )
        return target

    @property
    def handle(self) -> ContainerHandle:
        """Current handle. Only valid while the container is started."""
        if self._handle is None:
            raise ContainerStateError(
                f"No handle for container in state '{self.state.value}'",
                details={"state": self.state.value},
            )
        return self._handle

    def create(self) -> None:
        target = self._transition("create")
        self.container_id = self.runtime.create(self.spec)
        self.state = target

    def start(self) -> ContainerHandle:
        """Start the container and resolve the host port of the metrics port."""
        target = self._transition("start")
        self.runtime.start(self.container_id)
        self.state = target
        port = self.runtime.host_port(self.container_id, self.metrics_port)
        self._handle = ContainerHandle(
            container_id=self.container_id, host=self.host, metrics_port=port
        )
        logger.info(
            f"Container {self._handle.short_id} started, metrics at {self.host}:{port}"
        )
        return self._handle

    def stop(self) -> None:
        target = self._transition("stop")
        self._handle = None
        self.runtime.stop(self.container_id, timeout=self.stop_timeout)
        self.state = target

    def restart(self) -> ContainerHandle:
        """Stop then start the same container; the returned handle has the new port."""
        self.stop()
        return self.start()

    def exec(self, cmd: list[str], user: str | None = None) -> tuple[int, str]:
        if self.state is not ContainerState.STARTED:
            raise ContainerStateError(
                f"Cannot exec in container in state '{self.state.value}'",
                details={"operation": "exec", "state": self.state.value},
            )
        return self.runtime.exec(self.container_id, cmd, user=user)

    def exec_checked(self, cmd: list[str], user: str | None = None) -> str:
        """Run ``cmd`` and raise ContainerOperationError on a non-zero exit code."""
        rc, output = self.exec(cmd, user=user)
        if rc != 0:
            raise ContainerOperationError(
                "exec",
                " ".join(cmd),
                exit_code=rc,
                output=output,
                container_id=self.container_id,
            )
        return output

    def logs(self, tail: int = 50) -> str:
        if self.container_id is None or self.state is ContainerState.REMOVED:
            return ""
        return self.runtime.logs(self.container_id, tail=tail)

    def remove(self) -> None:
        """Stop if needed, then remove. Idempotent once removed."""
        if self.state in (ContainerState.PENDING, ContainerState.REMOVED):
            return
        if self.state is ContainerState.STARTED:
            try:
                self.stop()
            except ContainerOperationError as e:
                # Removal is forced, so a failed stop still ends in REMOVED
                logger.warning(f"Stop before remove failed: {e}")
        target = self._transition("remove")
        self._handle = None
        self.runtime.remove(self.container_id)
        self.state = target

    def __enter__(self) -> "ManagedContainer":
        self.create()
        try:
            self.start()
        except BaseException:
            self.remove()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.remove()
        except ContainerOperationError as e:
            if exc is None:
                raise
            # Keep the original failure as the one reported
            logger.error(f"Cleanup of container {self.container_id} failed: {e}")
