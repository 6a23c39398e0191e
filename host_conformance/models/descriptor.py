"""Models for run descriptors produced by the matrix builder."""

from collections.abc import Mapping

from pydantic import Field

from host_conformance.models.base import Model


class Invocation(Model):
    """Launch recipe for one run, resolved from the catalog."""

    binary: str = Field(..., description="Executable name for local runs")
    image: str = Field(..., description="Container image for container runs")
    args: tuple[str, ...] = Field(default=(), description="Command line arguments")
    env: Mapping[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )


class RunDescriptor(Model):
    """One (implementation, fixture, environment) combination of the matrix.

    ``environment`` is None unless the fixture is environment-sensitive.
    """

    implementation: str
    fixture: str
    environment: str | None = None
    invocation: Invocation

    @property
    def key(self) -> tuple[str, str, str | None]:
        return (self.implementation, self.fixture, self.environment)

    @property
    def label(self) -> str:
        parts = [self.implementation, self.fixture]
        if self.environment is not None:
            parts.append(self.environment)
        return "/".join(parts)
