"""CLI entry point for the conformance matrix runner."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from host_conformance.backends.loading import load_backend_manifest
from host_conformance.backends.manifest import BackendManifest
from host_conformance.catalog import DEFAULT_CATALOG
from host_conformance.catalog_loader import load_catalog
from host_conformance.executor import Executor
from host_conformance.matrix import build_matrix
from host_conformance.models.catalog import Catalog, InvalidFilterError
from host_conformance.models.config import (
    DEFAULT_JOBS,
    DEFAULT_TIMEOUT,
    RunConfiguration,
)
from host_conformance.models.result import RunResult
from host_conformance.reporter import (
    format_output,
    log_configuration,
    render_report,
    summarize,
)

INTERRUPTED_EXIT_CODE = 130


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def positive_float(value: str) -> float:
    number = float(value)
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def json_object(value: str) -> dict[str, Any]:
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError("must be a JSON object")
    return data


def catalog_help(catalog: Catalog) -> str:
    """Describe the filters a catalog accepts."""
    sensitive = [f.name for f in catalog.fixtures if f.environment_sensitive]
    return "\n".join(
        [
            "FILTERS:",
            "A filter selects implementations, fixtures or environments to run.",
            "If none of a kind are given, all of that kind are run.",
            "",
            "IMPLEMENTATIONS:",
            "  " + ", ".join(catalog.implementation_names),
            "",
            "FIXTURES:",
            "  " + ", ".join(catalog.fixture_names),
            "",
            f"ENVIRONMENTS: ({', '.join(sensitive) or 'no fixture'} only)",
            "  " + ", ".join(catalog.environment_names),
        ]
    )


def build_parser(catalog: Catalog) -> argparse.ArgumentParser:
    """Build the argument parser, listing the catalog's names in the help."""
    parser = argparse.ArgumentParser(
        prog="host-conformance",
        description="Run host implementations against the conformance fixtures",
        epilog=catalog_help(catalog),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print debug information and output of passing runs",
    )
    parser.add_argument(
        "--docker",
        action="store_true",
        help="Use container images instead of local builds",
    )
    parser.add_argument(
        "--jobs",
        type=positive_int,
        default=DEFAULT_JOBS,
        help=f"Maximum number of runs in parallel (default: {DEFAULT_JOBS})",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds before a run is killed (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path(),
        help="Directory holding bin/, lib/ and the fixtures (default: current)",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="YAML catalog to use instead of the built-in one",
    )
    parser.add_argument(
        "--backend-config",
        type=json_object,
        default={},
        help="JSON object with extra backend settings",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    parser.add_argument(
        "filters",
        nargs="*",
        metavar="FILTER",
        help="Implementation, fixture or environment name",
    )
    return parser


def select_catalog(argv: Sequence[str] | None) -> Catalog:
    """Load the catalog named by --catalog before the full parse.

    The help text and filter validation both depend on the catalog.
    """
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--catalog", type=Path)
    known, _ = pre_parser.parse_known_args(argv)

    if known.catalog is None:
        return DEFAULT_CATALOG
    try:
        return load_catalog(known.catalog)
    except (FileNotFoundError, ValueError) as e:
        pre_parser.error(str(e))


def backend_settings(
    config: RunConfiguration, root: Path, overrides: Mapping[str, Any]
) -> dict[str, Any]:
    """Collect the settings the selected backend's config is built from."""
    settings: dict[str, Any] = {"root": root} if config.backend_key == "local" else {}
    settings.update(overrides)
    return settings


def load_backend(
    config: RunConfiguration, settings: Mapping[str, Any]
) -> tuple[BackendManifest[Any, Any], BaseModel]:
    """Load the selected backend and build its config from the settings.

    Raises:
        ValidationError: If the settings do not fit the backend's config

    """
    manifest = load_backend_manifest(config.backend_key)
    return manifest, manifest.config_cls(**settings)


async def run(
    config: RunConfiguration,
    catalog: Catalog,
    settings: Mapping[str, Any],
    json_output: bool = False,
) -> int:
    """Run the selected matrix and return the exit code."""
    log = logging.getLogger("host_conformance")

    resolved = config.resolve(catalog)
    log_configuration(log, resolved)

    descriptors = build_matrix(resolved, catalog)
    log.info("Matrix has %d run(s)", len(descriptors))

    results: Sequence[RunResult] = []
    if descriptors:
        log.info("Loading backend: %s", config.backend_key)
        manifest, backend_config = load_backend(config, settings)

        async with manifest.backend_factory(backend_config) as backend:
            executor = Executor(
                backend=backend,
                timeout=config.timeout,
                jobs=config.jobs,
                verbose=config.verbose,
            )
            results = await executor.run_all(descriptors)

    report, exit_code = summarize(results)

    if json_output:
        print(json.dumps(format_output(report), indent=2))
    else:
        print(render_report(report))

    return exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    catalog = select_catalog(argv)
    parser = build_parser(catalog)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = RunConfiguration(
            verbose=args.verbose,
            docker=args.docker,
            jobs=args.jobs,
            timeout=args.timeout,
        ).with_filters(args.filters, catalog)
    except InvalidFilterError as e:
        parser.print_help(sys.stderr)
        parser.exit(2, f"\n{parser.prog}: error: {e}\n")

    settings = backend_settings(config, args.root, args.backend_config)
    try:
        load_backend(config, settings)
    except ValidationError as e:
        parser.error(f"invalid --backend-config for {config.backend_key} backend: {e}")

    try:
        exit_code = asyncio.run(
            run(config, catalog, settings, json_output=args.json)
        )
    except KeyboardInterrupt:
        logging.getLogger("host_conformance").warning(
            "Interrupted, in-flight runs were terminated"
        )
        sys.exit(INTERRUPTED_EXIT_CODE)
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
