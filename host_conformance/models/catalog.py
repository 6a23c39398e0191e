"""Models for the selection catalog of implementations, fixtures and environments."""

from collections import Counter
from collections.abc import Sequence
from typing import Literal

from pydantic import Field, model_validator

from host_conformance.models.base import Model

type FilterKind = Literal["implementation", "fixture", "environment"]
type ArtifactKind = Literal["adapter", "host"]


class InvalidFilterError(ValueError):
    """Raised when a filter value is not present in the catalog."""

    def __init__(self, token: str, kind: FilterKind | None = None) -> None:
        self.token = token
        self.kind = kind
        if kind is None:
            super().__init__(f"Unknown argument: {token}")
        else:
            super().__init__(f"Unknown {kind}: {token}")


class ArtifactRef(Model):
    """Where to find one artifact locally and as a container image."""

    binary: str = Field(..., description="Executable name looked up on PATH")
    image: str = Field(..., description="Container image running the artifact")


class ImplementationEntry(Model):
    """A host implementation under test."""

    name: str
    adapter: ArtifactRef = Field(..., description="Adapter used by adapter fixtures")
    host: ArtifactRef = Field(..., description="Full host used by host fixtures")


class FixtureEntry(Model):
    """A test fixture exercised against every selected implementation."""

    name: str
    artifact: ArtifactKind = Field(
        default="adapter", description="Which artifact of the implementation runs"
    )
    environment_sensitive: bool = Field(
        default=False, description="Whether the fixture runs once per environment"
    )
    args: Sequence[str] = Field(
        default_factory=tuple, description="Arguments passed to the artifact"
    )


class EnvironmentEntry(Model):
    """A host-API execution mode."""

    name: str


class Catalog(Model):
    """Closed sets of known names.

    Declaration order defines matrix order.
    """

    implementations: Sequence[ImplementationEntry]
    fixtures: Sequence[FixtureEntry]
    environments: Sequence[EnvironmentEntry] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "Catalog":
        names = [
            *self.implementation_names,
            *self.fixture_names,
            *self.environment_names,
        ]
        duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate catalog names: {', '.join(duplicates)}")
        return self

    @property
    def implementation_names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.implementations)

    @property
    def fixture_names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.fixtures)

    @property
    def environment_names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.environments)

    def classify(self, token: str) -> FilterKind:
        """Return which filter set a command line token belongs to.

        Raises:
            InvalidFilterError: If the token is not a known name

        """
        if token in self.implementation_names:
            return "implementation"
        if token in self.fixture_names:
            return "fixture"
        if token in self.environment_names:
            return "environment"
        raise InvalidFilterError(token)

    def implementation(self, name: str) -> ImplementationEntry:
        for entry in self.implementations:
            if entry.name == name:
                return entry
        raise InvalidFilterError(name, "implementation")

    def fixture(self, name: str) -> FixtureEntry:
        for entry in self.fixtures:
            if entry.name == name:
                return entry
        raise InvalidFilterError(name, "fixture")
