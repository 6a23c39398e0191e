"""Models for run outcomes and results."""

from dataclasses import dataclass
from typing import Literal

from host_conformance.models.descriptor import RunDescriptor

Status = Literal["pass", "fail", "error", "timeout"]


@dataclass(frozen=True, kw_only=True)
class RawOutcome:
    """What a backend observed for a run that finished on its own."""

    exit_code: int
    stdout: str
    stderr: str
    duration: float


@dataclass(frozen=True, kw_only=True)
class TimedOut:
    """Marker for a run that was killed after exceeding its timeout."""

    stdout: str = ""
    stderr: str = ""
    duration: float


@dataclass(frozen=True, kw_only=True)
class RunResult:
    """Classified outcome of one descriptor.

    ``index`` is the descriptor's position in the matrix.
    """

    index: int
    descriptor: RunDescriptor
    status: Status
    duration: float
    output: str | None = None
    message: str | None = None
