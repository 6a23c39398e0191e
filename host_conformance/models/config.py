"""Run configuration built once at startup."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field

from host_conformance.models.base import Model
from host_conformance.models.catalog import Catalog, FilterKind, InvalidFilterError

DEFAULT_JOBS = 4
DEFAULT_TIMEOUT = 300.0


def _resolve_filter(
    selected: Sequence[str], known: Sequence[str], kind: FilterKind
) -> tuple[str, ...]:
    """Validate a filter, default it to all known values and order it."""
    for name in selected:
        if name not in known:
            raise InvalidFilterError(name, kind)
    if not selected:
        return tuple(known)
    return tuple(name for name in known if name in selected)


class RunConfiguration(Model):
    """Settings for one harness invocation.

    Empty filters mean "every known value". ``resolve`` fills them in against
    a catalog before the matrix is built.
    """

    verbose: bool = False
    docker: bool = False
    implementations: tuple[str, ...] = ()
    fixtures: tuple[str, ...] = ()
    environments: tuple[str, ...] = ()
    jobs: int = Field(default=DEFAULT_JOBS, gt=0, description="Concurrent runs")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Per-run timeout in seconds"
    )

    @property
    def backend_key(self) -> Literal["local", "container"]:
        return "container" if self.docker else "local"

    def with_filters(self, tokens: Sequence[str], catalog: Catalog) -> "RunConfiguration":
        """Return a copy with each token added to the filter set it names.

        Raises:
            InvalidFilterError: On the first token that is not in the catalog

        """
        filters: dict[FilterKind, list[str]] = {
            "implementation": list(self.implementations),
            "fixture": list(self.fixtures),
            "environment": list(self.environments),
        }
        for token in tokens:
            filters[catalog.classify(token)].append(token)

        return self.model_copy(
            update={
                "implementations": tuple(filters["implementation"]),
                "fixtures": tuple(filters["fixture"]),
                "environments": tuple(filters["environment"]),
            }
        )

    def resolve(self, catalog: Catalog) -> "RunConfiguration":
        """Validate filters and replace empty ones with all known values.

        Raises:
            InvalidFilterError: If any filter value is not in the catalog

        """
        return self.model_copy(
            update={
                "implementations": _resolve_filter(
                    self.implementations, catalog.implementation_names, "implementation"
                ),
                "fixtures": _resolve_filter(
                    self.fixtures, catalog.fixture_names, "fixture"
                ),
                "environments": _resolve_filter(
                    self.environments, catalog.environment_names, "environment"
                ),
            }
        )
