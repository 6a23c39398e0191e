"""Loading of run backends from entry points."""

from importlib.metadata import entry_points
from typing import Any

from host_conformance.backends.manifest import BackendManifest

ENTRY_POINT_GROUP = "host_conformance.backends"


class BackendNotFoundError(Exception):
    """Raised when no backend is registered under a key."""


def available_backends() -> list[str]:
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_backend_manifest(key: str) -> BackendManifest[Any, Any]:
    """Load the manifest registered under ``key``.

    Only the selected backend's module is imported.

    Raises:
        BackendNotFoundError: If no backend is registered under the key
        TypeError: If the entry point does not refer to a BackendManifest

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        raise BackendNotFoundError(
            f"Backend '{key}' not found. Available backends: {available_backends()}"
        )

    entry = matches[key]
    manifest = entry.load()
    if not isinstance(manifest, BackendManifest):
        raise TypeError(
            f"Entry point '{key}' in {ENTRY_POINT_GROUP} is not a backend manifest: "
            f"{entry.value}"
        )
    return manifest
