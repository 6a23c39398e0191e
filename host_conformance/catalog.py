"""Built-in selection catalog of the Polkadot host conformance suite."""

from host_conformance.models.catalog import (
    ArtifactRef,
    Catalog,
    EnvironmentEntry,
    FixtureEntry,
    ImplementationEntry,
)


def _implementation(name: str, host_binary: str, host_image: str) -> ImplementationEntry:
    return ImplementationEntry(
        name=name,
        adapter=ArtifactRef(
            binary=f"{name}-adapter", image=f"w3fhostapi/{name}-adapter"
        ),
        host=ArtifactRef(binary=host_binary, image=host_image),
    )


DEFAULT_CATALOG = Catalog(
    implementations=(
        _implementation("substrate", "polkadot", "parity/polkadot"),
        _implementation("kagome", "kagome", "soramitsu/kagome"),
        _implementation("gossamer", "gossamer", "chainsafe/gossamer"),
    ),
    fixtures=(
        FixtureEntry(name="scale-codec", args=("scale-codec",)),
        FixtureEntry(name="state-trie", args=("state-trie",)),
        FixtureEntry(name="host-api", args=("host-api",), environment_sensitive=True),
        FixtureEntry(
            name="genesis",
            artifact="host",
            args=("--chain", "fixtures/genesis/genesis.json"),
        ),
    ),
    environments=(
        EnvironmentEntry(name="wasmi"),
        EnvironmentEntry(name="wasmtime"),
    ),
)
