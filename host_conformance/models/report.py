"""Aggregated report over all results of a matrix."""

from collections.abc import Sequence
from dataclasses import dataclass

from host_conformance.models.result import RunResult


@dataclass(frozen=True, kw_only=True)
class Report:
    """Results in matrix order with per-status counts."""

    results: Sequence[RunResult]
    passed: int
    failed: int
    errors: int
    timeouts: int

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def ok(self) -> bool:
        """True iff every result passed."""
        return self.passed == self.total
