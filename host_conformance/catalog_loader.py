"""Load a selection catalog from a YAML file."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from host_conformance.models.catalog import Catalog


def load_catalog(path: Path) -> Catalog:
    """Load and validate a catalog file.

    Example file::

        implementations:
          - name: substrate
            adapter: {binary: substrate-adapter, image: w3fhostapi/substrate-adapter}
            host: {binary: polkadot, image: parity/polkadot}
        fixtures:
          - name: host-api
            args: [host-api]
            environment_sensitive: true
        environments:
          - name: wasmi

    Args:
        path: Path to the YAML catalog

    Returns:
        The validated catalog

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, not valid YAML or fails validation

    """
    if not path.is_file():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in catalog file {path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty catalog file: {path}")

    try:
        return Catalog.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid catalog schema in {path}: {e}") from e
