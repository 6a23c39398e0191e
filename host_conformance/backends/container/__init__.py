"""Container backend module."""

from host_conformance.backends.container.backend import ContainerBackend, ContainerRun
from host_conformance.backends.container.config import ContainerBackendConfig
from host_conformance.backends.container.manifest import container_manifest

__all__ = [
    "ContainerBackend",
    "ContainerBackendConfig",
    "ContainerRun",
    "container_manifest",
]
