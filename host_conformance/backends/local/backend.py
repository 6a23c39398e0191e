"""Local process backend implementation."""

import asyncio
import contextlib
import logging
import os
import shutil
import signal
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from host_conformance.backends.base import RunBackend, UnstartableError
from host_conformance.backends.local.config import LocalBackendConfig
from host_conformance.models.descriptor import RunDescriptor

log = logging.getLogger(__name__)


def build_search_env(
    config: LocalBackendConfig, environ: Mapping[str, str]
) -> dict[str, str]:
    """Extend PATH and LD_LIBRARY_PATH with the locally built artifacts.

    Some hosts link dynamically against libraries that are only built
    locally, so the library directory is appended to the loader path as
    well. The variable is created when absent.
    """
    env = dict(environ)

    path = env.get("PATH", os.defpath)
    env["PATH"] = f"{path}{os.pathsep}{config.binaries}"

    if library_path := env.get("LD_LIBRARY_PATH"):
        env["LD_LIBRARY_PATH"] = f"{library_path}{os.pathsep}{config.libraries}"
    else:
        env["LD_LIBRARY_PATH"] = str(config.libraries)

    return env


@dataclass(frozen=True, kw_only=True, eq=False)
class LocalRun:
    """A child process with the tasks draining its output pipes."""

    process: asyncio.subprocess.Process
    stdout: asyncio.Task[bytes]
    stderr: asyncio.Task[bytes]


@dataclass(frozen=True, kw_only=True)
class LocalBackend(RunBackend[LocalRun]):
    """Runs artifacts as child processes found on an extended search path.

    Every child gets its own session so a timeout or abort can kill the
    whole process group, including anything the artifact spawned.
    """

    config: LocalBackendConfig
    search_env: Mapping[str, str] = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: LocalBackendConfig
    ) -> AsyncGenerator["LocalBackend", None]:
        """Create backend and reclaim leftover processes on exit."""
        backend = cls(config=config, search_env=build_search_env(config, os.environ))
        log.debug(
            "Local backend: binaries=%s libraries=%s workdir=%s",
            config.binaries,
            config.libraries,
            config.workdir,
        )
        try:
            yield backend
        finally:
            await backend.reclaim()

    def resolve_executable(self, binary: str) -> str:
        """Find the executable of an artifact on the search path."""
        executable = shutil.which(binary, path=self.search_env.get("PATH"))
        if executable is None:
            raise UnstartableError(f"Executable not found on PATH: {binary}")
        return executable

    async def start(self, descriptor: RunDescriptor) -> LocalRun:
        """Spawn the artifact with its arguments and environment."""
        invocation = descriptor.invocation
        executable = self.resolve_executable(invocation.binary)

        log.debug("Spawning %s %s", executable, " ".join(invocation.args))
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *invocation.args,
                cwd=self.config.workdir,
                env={**self.search_env, **invocation.env},
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise UnstartableError(f"Failed to start {executable}: {e}") from e

        if process.stdout is None or process.stderr is None:
            raise UnstartableError(f"Failed to create output pipes for {executable}")

        # Drain both pipes while the process runs so it never blocks on a
        # full pipe buffer.
        return LocalRun(
            process=process,
            stdout=asyncio.create_task(process.stdout.read()),
            stderr=asyncio.create_task(process.stderr.read()),
        )

    async def wait(self, handle: LocalRun) -> int:
        return await handle.process.wait()

    async def output(self, handle: LocalRun) -> tuple[str, str]:
        stdout = await handle.stdout
        stderr = await handle.stderr
        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def kill(self, handle: LocalRun) -> None:
        self._kill_group(handle)
        await handle.process.wait()

    async def release(self, handle: LocalRun) -> None:
        # Children left behind by an artifact that already exited
        self._kill_group(handle)
        for task in (handle.stdout, handle.stderr):
            if not task.done():
                task.cancel()

    def _kill_group(self, handle: LocalRun) -> None:
        with contextlib.suppress(ProcessLookupError):
            os.killpg(handle.process.pid, signal.SIGKILL)
