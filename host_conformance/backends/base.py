"""Abstract base class for run backends."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass, field

from host_conformance.models.descriptor import RunDescriptor
from host_conformance.models.result import RawOutcome, TimedOut

log = logging.getLogger(__name__)


class UnstartableError(RuntimeError):
    """Raised when a backend cannot locate or launch the artifact of a run."""


@dataclass(frozen=True, kw_only=True)
class RunBackend[T: Hashable](ABC):
    """Abstract base for the media a run descriptor can be executed on.

    Generic type T is the handle of a launched run - whatever the backend
    needs to wait for, kill and clean up after the artifact, e.g. a child
    process or a container ID.
    """

    _in_flight: set[T] = field(default_factory=set, init=False, repr=False)

    @abstractmethod
    async def start(self, descriptor: RunDescriptor) -> T:
        """Launch the artifact of a descriptor.

        Raises:
            UnstartableError: If the artifact cannot be found or started

        """

    @abstractmethod
    async def wait(self, handle: T) -> int:
        """Wait for the artifact to finish and return its exit code."""

    @abstractmethod
    async def output(self, handle: T) -> tuple[str, str]:
        """Return captured stdout and stderr of a finished or killed run."""

    @abstractmethod
    async def kill(self, handle: T) -> None:
        """Forcibly terminate a run. Must be safe on a finished run."""

    async def release(self, handle: T) -> None:
        """Free resources held for a run once its outcome is known."""

    async def run(self, descriptor: RunDescriptor, timeout: float) -> RawOutcome | TimedOut:
        """Execute one descriptor to completion or until the timeout expires.

        Args:
            descriptor: Run to execute
            timeout: Seconds the artifact may run before it is killed

        Returns:
            The raw outcome, or TimedOut if the artifact had to be killed

        Raises:
            UnstartableError: If the artifact cannot be found or started

        """
        started = time.monotonic()
        handle = await self.start(descriptor)
        self._in_flight.add(handle)
        log.debug("Started %s", descriptor.label)

        try:
            try:
                async with asyncio.timeout(timeout):
                    exit_code = await self.wait(handle)
            except TimeoutError:
                log.warning("%s exceeded %.1fs, killing", descriptor.label, timeout)
                try:
                    await self.kill(handle)
                except Exception as e:
                    # Still a timeout; release gets another chance to remove it
                    log.error(
                        "Failed to kill %s: %s", descriptor.label, e, exc_info=e
                    )
                stdout, stderr = await self.output(handle)
                return TimedOut(
                    stdout=stdout, stderr=stderr, duration=time.monotonic() - started
                )

            stdout, stderr = await self.output(handle)
            return RawOutcome(
                exit_code=exit_code,
                stdout=stdout,
                stderr=stderr,
                duration=time.monotonic() - started,
            )
        except asyncio.CancelledError:
            log.debug("Cancelled %s, killing", descriptor.label)
            await self.kill(handle)
            raise
        finally:
            self._in_flight.discard(handle)
            await self.release(handle)

    async def reclaim(self) -> None:
        """Kill and release every run that is still in flight."""
        handles = list(self._in_flight)
        if not handles:
            return

        log.info("Reclaiming %d in-flight run(s)", len(handles))
        results = await asyncio.gather(
            *(self._reclaim_one(handle) for handle in handles),
            return_exceptions=True,
        )
        for handle, result in zip(handles, results, strict=True):
            if isinstance(result, Exception):
                log.error("Failed to reclaim %r: %s", handle, result, exc_info=result)

    async def _reclaim_one(self, handle: T) -> None:
        await self.kill(handle)
        self._in_flight.discard(handle)
        await self.release(handle)
