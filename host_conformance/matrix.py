"""Expand a run configuration into the ordered matrix of run descriptors."""

from collections.abc import Sequence

from host_conformance.models.catalog import Catalog, FixtureEntry, ImplementationEntry
from host_conformance.models.config import RunConfiguration
from host_conformance.models.descriptor import Invocation, RunDescriptor


def build_matrix(config: RunConfiguration, catalog: Catalog) -> Sequence[RunDescriptor]:
    """Build the descriptors selected by a configuration.

    Order is implementation-major, then fixture, then environment, each in
    catalog declaration order. Fixtures that are not environment-sensitive
    yield a single descriptor without environment, whatever the environment
    filter says. So does a sensitive fixture when the catalog declares no
    environments at all.

    Args:
        config: Run configuration, resolved or not
        catalog: Catalog the filters are checked against

    Returns:
        Run descriptors in matrix order

    Raises:
        InvalidFilterError: If a filter value is not in the catalog

    """
    resolved = config.resolve(catalog)

    descriptors: list[RunDescriptor] = []
    for implementation_name in resolved.implementations:
        implementation = catalog.implementation(implementation_name)
        for fixture_name in resolved.fixtures:
            fixture = catalog.fixture(fixture_name)
            environments: Sequence[str | None] = (
                (resolved.environments or [None])
                if fixture.environment_sensitive
                else [None]
            )
            for environment in environments:
                descriptors.append(
                    RunDescriptor(
                        implementation=implementation.name,
                        fixture=fixture.name,
                        environment=environment,
                        invocation=build_invocation(
                            implementation, fixture, environment
                        ),
                    )
                )
    return descriptors


def build_invocation(
    implementation: ImplementationEntry,
    fixture: FixtureEntry,
    environment: str | None,
) -> Invocation:
    """Resolve which artifact runs and with which parameters."""
    artifact = (
        implementation.host if fixture.artifact == "host" else implementation.adapter
    )

    args = list(fixture.args)
    env = {
        "CONFORMANCE_IMPLEMENTATION": implementation.name,
        "CONFORMANCE_FIXTURE": fixture.name,
    }
    if environment is not None:
        args.extend(["--environment", environment])
        env["CONFORMANCE_ENVIRONMENT"] = environment

    return Invocation(
        binary=artifact.binary,
        image=artifact.image,
        args=tuple(args),
        env=env,
    )
