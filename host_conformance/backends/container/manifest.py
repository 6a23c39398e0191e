"""Container backend manifest."""

from host_conformance.backends.container.backend import ContainerBackend
from host_conformance.backends.container.config import ContainerBackendConfig
from host_conformance.backends.manifest import BackendManifest

container_manifest = BackendManifest(
    config_cls=ContainerBackendConfig,
    backend_factory=ContainerBackend.from_config,
)
