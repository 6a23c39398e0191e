"""Local process backend module."""

from host_conformance.backends.local.backend import LocalBackend, LocalRun
from host_conformance.backends.local.config import LocalBackendConfig
from host_conformance.backends.local.manifest import local_manifest

__all__ = ["LocalBackend", "LocalBackendConfig", "LocalRun", "local_manifest"]
