"""Container runtime access and scoped container lifecycle."""

from mqready.container.lifecycle import ContainerHandle, ContainerState, ManagedContainer
from mqready.container.runtime import ContainerRuntime, ContainerSpec

__all__ = [
    "ContainerHandle",
    "ContainerRuntime",
    "ContainerSpec",
    "ContainerState",
    "ManagedContainer",
]
