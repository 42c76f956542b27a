"""
Docker implementation of ContainerRuntime, built on the docker SDK.

The client is shared between scenarios; the daemon serializes concurrent
operations, so no locking happens here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import docker
from docker.errors import DockerException

from mqready.container.runtime import ContainerSpec
from mqready.core.exceptions import ContainerOperationError
from mqready.core.logging import get_logger

if TYPE_CHECKING:
    from docker.models.containers import Container

logger = get_logger("container.docker")


class DockerContainerRuntime:
    """ContainerRuntime over a docker.DockerClient."""

    def __init__(self, client: docker.DockerClient | None = None):
        self._owns_client = client is None
        self.client = client or docker.from_env()

    def _get(self, container_id: str, operation: str) -> "Container":
        try:
            return self.client.containers.get(container_id)
        except DockerException as e:
            raise ContainerOperationError(
                operation, str(e), container_id=container_id
            ) from e

    def create(self, spec: ContainerSpec) -> str:
        try:
            container = self.client.containers.create(
                spec.image,
                environment=spec.environment,
                # None publishes on a random free host port
                ports={f"{port}/tcp": None for port in spec.ports},
                name=spec.name,
                labels=spec.labels,
                detach=True,
            )
        except DockerException as e:
            raise ContainerOperationError("create", str(e)) from e
        logger.info(f"Created container {container.short_id} from {spec.image}")
        return container.id

    def start(self, container_id: str) -> None:
        container = self._get(container_id, "start")
        try:
            container.start()
        except DockerException as e:
            raise ContainerOperationError("start", str(e), container_id=container_id) from e
        logger.info(f"Started container {container.short_id}")

    def stop(self, container_id: str, timeout: int = 10) -> None:
        container = self._get(container_id, "stop")
        try:
            container.stop(timeout=timeout)
        except DockerException as e:
            raise ContainerOperationError("stop", str(e), container_id=container_id) from e
        logger.info(f"Stopped container {container.short_id}")

    def remove(self, container_id: str) -> None:
        container = self._get(container_id, "remove")
        try:
            container.remove(v=True, force=True)
        except DockerException as e:
            raise ContainerOperationError("remove", str(e), container_id=container_id) from e
        logger.info(f"Removed container {container.short_id}")

    def exec(
        self, container_id: str, cmd: Sequence[str], user: str | None = None
    ) -> tuple[int, str]:
        container = self._get(container_id, "exec")
        try:
            result = container.exec_run(list(cmd), user=user or "")
        except DockerException as e:
            raise ContainerOperationError(
                "exec", f"{' '.join(cmd)}: {e}", container_id=container_id
            ) from e
        output = (result.output or b"").decode("utf-8", errors="replace")
        logger.debug(f"exec {' '.join(cmd)} in {container.short_id}: rc={result.exit_code}")
        return result.exit_code, output

    def host_port(self, container_id: str, container_port: int) -> int:
        container = self._get(container_id, "inspect")
        # Port bindings are only filled in while the container is running
        container.reload()
        bindings = (container.ports or {}).get(f"{container_port}/tcp") or []
        for binding in bindings:
            host_port = binding.get("HostPort")
            if host_port:
                return int(host_port)
        raise ContainerOperationError(
            "inspect",
            f"port {container_port}/tcp is not published",
            container_id=container_id,
        )

    def logs(self, container_id: str, tail: int = 50) -> str:
        container = self._get(container_id, "logs")
        try:
            return container.logs(tail=tail).decode("utf-8", errors="replace")
        except DockerException as e:
            raise ContainerOperationError("logs", str(e), container_id=container_id) from e

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
