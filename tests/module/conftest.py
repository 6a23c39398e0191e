"""Fixtures for module tests against a real Docker daemon."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from host_conformance.backends.container import ContainerBackend, ContainerBackendConfig
from host_conformance.backends.container.config import DEFAULT_DOCKER_HOST

TEST_IMAGE = "alpine:3.20"


def docker_available() -> bool:
    """Check whether a daemon is configured or its default socket exists."""
    host = os.environ.get("DOCKER_HOST", DEFAULT_DOCKER_HOST)
    if host.startswith("unix://"):
        return Path(host.removeprefix("unix://")).exists()
    return True


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Skip docker tests when no daemon is reachable."""
    if docker_available():
        return
    skip = pytest.mark.skip(reason="Docker daemon not available")
    for item in items:
        if "docker" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
async def backend() -> AsyncGenerator[ContainerBackend, None]:
    """Create backend talking to the local daemon."""
    async with ContainerBackend.from_config(ContainerBackendConfig()) as impl:
        yield impl
