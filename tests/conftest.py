"""Shared fixtures."""

from collections.abc import Generator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from host_conformance.models.catalog import (
    ArtifactRef,
    Catalog,
    EnvironmentEntry,
    FixtureEntry,
    ImplementationEntry,
)


def make_implementation(name: str) -> ImplementationEntry:
    """Create an implementation whose artifacts are named after it."""
    return ImplementationEntry(
        name=name,
        adapter=ArtifactRef(binary=f"{name}-adapter", image=f"test/{name}-adapter"),
        host=ArtifactRef(binary=f"{name}-host", image=f"test/{name}-host"),
    )


@pytest.fixture
def catalog() -> Catalog:
    """Catalog with one environment-insensitive and one sensitive fixture."""
    return Catalog(
        implementations=[make_implementation("alpha"), make_implementation("beta")],
        fixtures=[
            FixtureEntry(name="codec", args=["codec"]),
            FixtureEntry(name="host-api", args=["host-api"], environment_sensitive=True),
            FixtureEntry(name="genesis", artifact="host", args=["--chain", "genesis.json"]),
        ],
        environments=[EnvironmentEntry(name="wasmi"), EnvironmentEntry(name="wasmtime")],
    )


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Mock every aiohttp request made during the test."""
    with aioresponses_cls() as mock:
        yield mock
