"""Container runtime interface used by the harness."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass
class ContainerSpec:
    """What to create: image, environment and container ports to publish."""

    image: str
    environment: dict[str, str] = field(default_factory=dict)
    ports: list[int] = field(default_factory=list)
    name: str | None = None
    labels: dict[str, str] = field(default_factory=dict)


class ContainerRuntime(Protocol):
    """
    The container operations the harness needs.

    Every method raises ContainerOperationError when the runtime call
    itself fails. ``exec`` returns the command's exit code instead of
    raising on a non-zero one so callers can decide what it means.
    """

    def create(self, spec: ContainerSpec) -> str:
        """Create a container with each of ``spec.ports`` published on a free host port."""
        ...

    def start(self, container_id: str) -> None:
        ...

    def stop(self, container_id: str, timeout: int = 10) -> None:
        ...

    def remove(self, container_id: str) -> None:
        ...

    def exec(
        self, container_id: str, cmd: Sequence[str], user: str | None = None
    ) -> tuple[int, str]:
        """Run ``cmd`` inside the container, returning (exit_code, combined output)."""
        ...

    def host_port(self, container_id: str, container_port: int) -> int:
        """Host port currently bound to ``container_port``; changes across restarts."""
        ...

    def logs(self, container_id: str, tail: int = 50) -> str:
        ...
