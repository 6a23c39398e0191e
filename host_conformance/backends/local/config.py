"""Configuration for the local process backend."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class LocalBackendConfig(BaseModel):
    """Configuration for the local process backend.

    Relative directories are taken relative to ``root``, which is also the
    working directory of every run so fixtures can use relative paths.
    """

    model_config = ConfigDict(extra="forbid")

    root: Path = Path()
    bin_dir: Path = Path("bin")
    lib_dir: Path = Path("lib")

    @property
    def workdir(self) -> Path:
        return self.root.resolve()

    @property
    def binaries(self) -> Path:
        return self.workdir / self.bin_dir

    @property
    def libraries(self) -> Path:
        return self.workdir / self.lib_dir
