"""Backend manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from host_conformance.backends.base import RunBackend


@dataclass(frozen=True, kw_only=True)
class BackendManifest[ConfigT: BaseModel, HandleT]:
    """Manifest describing a backend plugin.

    The manifest references the configuration class and the backend factory
    so the backend selected at startup is only imported and built on demand.
    """

    config_cls: type[ConfigT]
    backend_factory: Callable[
        [ConfigT], AbstractAsyncContextManager[RunBackend[HandleT]]
    ]
