"""Local process backend manifest."""

from host_conformance.backends.local.backend import LocalBackend
from host_conformance.backends.local.config import LocalBackendConfig
from host_conformance.backends.manifest import BackendManifest

local_manifest = BackendManifest(
    config_cls=LocalBackendConfig,
    backend_factory=LocalBackend.from_config,
)
