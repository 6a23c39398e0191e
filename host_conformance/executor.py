"""Executor running a matrix of descriptors on a backend."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from host_conformance.backends.base import RunBackend, UnstartableError
from host_conformance.models.descriptor import RunDescriptor
from host_conformance.models.result import RawOutcome, RunResult, TimedOut

log = logging.getLogger(__name__)


def join_output(stdout: str, stderr: str) -> str:
    """Combine captured streams for diagnostics."""
    return "\n".join(part.rstrip("\n") for part in (stdout, stderr) if part.strip())


@dataclass(frozen=True, kw_only=True)
class Executor:
    """Runs descriptors concurrently on a single backend.

    At most ``jobs`` runs are in flight at once. A failing, erroring or
    hanging run never stops the others.
    """

    backend: RunBackend[Any]
    timeout: float
    jobs: int
    verbose: bool = False

    async def run_all(self, descriptors: Sequence[RunDescriptor]) -> Sequence[RunResult]:
        """Run every descriptor and return results in matrix order.

        Args:
            descriptors: Matrix of runs, in the order results are reported

        Returns:
            One result per descriptor, in the same order

        """
        if not descriptors:
            log.info("No runs selected")
            return []

        log.info(
            "Executing %d run(s) with up to %d in parallel", len(descriptors), self.jobs
        )
        semaphore = asyncio.Semaphore(self.jobs)
        tasks = [
            self._run_one(index, descriptor, semaphore)
            for index, descriptor in enumerate(descriptors)
        ]

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        log.info("Execution completed")

        return self._process_results(descriptors, outcomes)

    def _process_results(
        self,
        descriptors: Sequence[RunDescriptor],
        outcomes: Sequence[RunResult | BaseException],
    ) -> Sequence[RunResult]:
        """Turn unexpected exceptions into error results and restore order."""
        results: list[RunResult] = []

        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, RunResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                descriptor = descriptors[index]
                log.error(
                    "Run %s failed unexpectedly: %s",
                    descriptor.label,
                    outcome,
                    exc_info=outcome,
                )
                results.append(
                    RunResult(
                        index=index,
                        descriptor=descriptor,
                        status="error",
                        duration=0.0,
                        message=str(outcome) or type(outcome).__name__,
                    )
                )
            else:
                # KeyboardInterrupt, CancelledError and friends
                raise outcome

        return sorted(results, key=lambda result: result.index)

    async def _run_one(
        self,
        index: int,
        descriptor: RunDescriptor,
        semaphore: asyncio.Semaphore,
    ) -> RunResult:
        async with semaphore:
            log.info("Running %s", descriptor.label)
            try:
                outcome = await self.backend.run(descriptor, self.timeout)
            except UnstartableError as e:
                log.error("Could not start %s: %s", descriptor.label, e)
                return RunResult(
                    index=index,
                    descriptor=descriptor,
                    status="error",
                    duration=0.0,
                    message=str(e),
                )

        result = self.classify(index, descriptor, outcome)
        log.info(
            "Finished %s: status=%s duration=%.2fs",
            descriptor.label,
            result.status,
            result.duration,
        )
        return result

    def classify(
        self,
        index: int,
        descriptor: RunDescriptor,
        outcome: RawOutcome | TimedOut,
    ) -> RunResult:
        """Map a backend outcome to a result status."""
        output = join_output(outcome.stdout, outcome.stderr) or None

        if isinstance(outcome, TimedOut):
            return RunResult(
                index=index,
                descriptor=descriptor,
                status="timeout",
                duration=outcome.duration,
                output=output,
                message=f"Killed after exceeding {self.timeout:g}s",
            )

        if outcome.exit_code == 0:
            return RunResult(
                index=index,
                descriptor=descriptor,
                status="pass",
                duration=outcome.duration,
                output=output if self.verbose else None,
            )

        return RunResult(
            index=index,
            descriptor=descriptor,
            status="fail",
            duration=outcome.duration,
            output=output,
            message=f"Exited with code {outcome.exit_code}",
        )
