"""Fixtures for integration tests."""

import stat
from pathlib import Path
from typing import Protocol

import pytest


class WriteArtifactFn(Protocol):
    """Protocol for artifact creation function."""

    def __call__(self, name: str, body: str) -> Path:
        """Write an executable shell script into bin/ and return its path."""


@pytest.fixture
def artifact_root(tmp_path: Path) -> Path:
    """Create a root directory laid out like a local build."""
    (tmp_path / "bin").mkdir()
    (tmp_path / "lib").mkdir()
    return tmp_path


@pytest.fixture
def write_artifact(artifact_root: Path) -> WriteArtifactFn:
    """Return a function writing fake adapters and hosts."""

    def _write(name: str, body: str) -> Path:
        path = artifact_root / "bin" / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
