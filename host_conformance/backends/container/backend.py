"""Container backend implementation on top of the Docker Engine API."""

import asyncio
import logging
import struct
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp
from pydantic import ValidationError

from host_conformance.backends.base import RunBackend, UnstartableError
from host_conformance.backends.container.config import ContainerBackendConfig
from host_conformance.backends.container.models import (
    ContainerCreateResponse,
    ContainerWaitResponse,
    PullProgress,
)
from host_conformance.models.descriptor import RunDescriptor

log = logging.getLogger(__name__)

STDERR_STREAM = 2
FRAME_HEADER = struct.Struct(">BxxxI")


def docker_endpoint(
    config: ContainerBackendConfig,
) -> tuple[str, aiohttp.BaseConnector | None]:
    """Return the API base URL and the connector needed to reach the daemon."""
    host = config.docker_host
    if host.startswith("unix://"):
        connector = aiohttp.UnixConnector(path=host.removeprefix("unix://"))
        return f"http://docker/{config.api_version}/", connector
    if host.startswith("tcp://"):
        host = "http://" + host.removeprefix("tcp://")
    return f"{host.rstrip('/')}/{config.api_version}/", None


def split_image_reference(image: str) -> tuple[str, str | None]:
    """Split an image reference into repository and tag for pulling.

    Digest references are pulled as they are; a missing tag means latest.
    """
    if "@" in image:
        return image, None
    name, sep, tag = image.rpartition(":")
    if sep and "/" not in tag:
        return name, tag
    return image, "latest"


def demux_logs(data: bytes) -> tuple[bytes, bytes]:
    """Split a multiplexed log stream into stdout and stderr.

    Each frame is an 8 byte header (stream type, 3 padding bytes, big endian
    payload size) followed by the payload. Output of containers with a TTY is
    not multiplexed and is returned as stdout.
    """
    if data and data[0] not in (0, 1, 2):
        return data, b""

    stdout = bytearray()
    stderr = bytearray()
    offset = 0
    while offset + FRAME_HEADER.size <= len(data):
        stream, size = FRAME_HEADER.unpack_from(data, offset)
        offset += FRAME_HEADER.size
        payload = data[offset : offset + size]
        offset += size
        (stderr if stream == STDERR_STREAM else stdout).extend(payload)
    return bytes(stdout), bytes(stderr)


@dataclass(frozen=True, kw_only=True)
class ContainerRun:
    """A created container."""

    container_id: str
    name: str


@dataclass(frozen=True, kw_only=True)
class ContainerBackend(RunBackend[ContainerRun]):
    """Runs the container image of each artifact through the Docker daemon.

    Containers are not auto-removed so their logs can be read after they
    exit; ``release`` removes them.
    """

    config: ContainerBackendConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ContainerBackendConfig
    ) -> AsyncGenerator["ContainerBackend", None]:
        """Create backend with managed session lifecycle."""
        base_url, connector = docker_endpoint(config)
        # Waiting on a container is bounded by the run timeout instead.
        async with aiohttp.ClientSession(
            base_url=base_url,
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=None),
        ) as session:
            backend = cls(config=config, session=session)
            try:
                yield backend
            finally:
                await backend.reclaim()

    async def start(self, descriptor: RunDescriptor) -> ContainerRun:
        """Create and start the container of a descriptor."""
        invocation = descriptor.invocation
        name = f"{self.config.name_prefix}-{uuid.uuid4().hex[:12]}"
        payload = {
            "Image": invocation.image,
            "Cmd": list(invocation.args),
            "Env": [f"{key}={value}" for key, value in invocation.env.items()],
            "Tty": False,
            "Labels": {
                "host-conformance.implementation": descriptor.implementation,
                "host-conformance.fixture": descriptor.fixture,
                "host-conformance.environment": descriptor.environment or "",
            },
        }

        try:
            container_id = await self.create_container(name, payload)
        except aiohttp.ClientError as e:
            raise UnstartableError(f"Docker daemon unreachable: {e}") from e
        except asyncio.CancelledError:
            # The daemon may have created it already; names address containers too
            await self.release(ContainerRun(container_id=name, name=name))
            raise

        handle = ContainerRun(container_id=container_id, name=name)
        try:
            await self.start_container(container_id)
        except UnstartableError:
            await self.release(handle)
            raise
        except aiohttp.ClientError as e:
            await self.release(handle)
            raise UnstartableError(f"Failed to start container {name}: {e}") from e
        except asyncio.CancelledError:
            # Not yet tracked as in flight, so nothing else would remove it
            await self.release(handle)
            raise

        log.debug("Started container %s (%s) from %s", name, container_id, invocation.image)
        return handle

    async def create_container(self, name: str, payload: dict[str, object]) -> str:
        """Create a container, pulling its image once if it is missing."""
        image = str(payload["Image"])
        async with self.session.post(
            "containers/create", params={"name": name}, json=payload
        ) as response:
            status = response.status
            text = await response.text()

        if status == 404 and self.config.pull:
            log.info("Image %s not present, pulling", image)
            await self.pull_image(image)
            async with self.session.post(
                "containers/create", params={"name": name}, json=payload
            ) as response:
                status = response.status
                text = await response.text()

        if status != 201:
            raise UnstartableError(
                f"Failed to create container from {image}: {status} {text}"
            )

        created = ContainerCreateResponse.model_validate_json(text)
        for warning in created.Warnings or ():
            log.warning("Container %s: %s", name, warning)
        return created.Id

    async def pull_image(self, image: str) -> None:
        """Pull an image, failing on errors reported inside the stream."""
        repository, tag = split_image_reference(image)
        params = {"fromImage": repository}
        if tag is not None:
            params["tag"] = tag

        async with self.session.post("images/create", params=params) as response:
            text = await response.text()
            if response.status != 200:
                raise UnstartableError(
                    f"Failed to pull image {image}: {response.status} {text}"
                )

        for line in text.splitlines():
            if not line.strip():
                continue
            try:
                progress = PullProgress.model_validate_json(line)
            except ValidationError as e:
                raise UnstartableError(
                    f"Failed to pull image {image}: unreadable progress {line!r}"
                ) from e
            if progress.error:
                raise UnstartableError(f"Failed to pull image {image}: {progress.error}")

    async def start_container(self, container_id: str) -> None:
        async with self.session.post(f"containers/{container_id}/start") as response:
            if response.status not in (204, 304):
                text = await response.text()
                raise UnstartableError(
                    f"Failed to start container: {response.status} {text}"
                )

    async def wait(self, handle: ContainerRun) -> int:
        async with self.session.post(
            f"containers/{handle.container_id}/wait"
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to wait for container {handle.name}: "
                    f"{response.status} {text}"
                )
            data = await response.json()

        result = ContainerWaitResponse.model_validate(data)
        if result.Error is not None and result.Error.Message:
            log.warning("Container %s: %s", handle.name, result.Error.Message)
        return result.StatusCode

    async def output(self, handle: ContainerRun) -> tuple[str, str]:
        async with self.session.get(
            f"containers/{handle.container_id}/logs",
            params={"stdout": "1", "stderr": "1"},
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to read logs of container {handle.name}: "
                    f"{response.status} {text}"
                )
            data = await response.read()

        stdout, stderr = demux_logs(data)
        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def kill(self, handle: ContainerRun) -> None:
        async with self.session.post(
            f"containers/{handle.container_id}/kill"
        ) as response:
            # 404: already removed, 409: not running any more
            if response.status not in (204, 404, 409):
                text = await response.text()
                raise RuntimeError(
                    f"Failed to kill container {handle.name}: {response.status} {text}"
                )

    async def release(self, handle: ContainerRun) -> None:
        async with self.session.delete(
            f"containers/{handle.container_id}", params={"force": "true"}
        ) as response:
            if response.status not in (204, 404, 409):
                text = await response.text()
                log.warning(
                    "Failed to remove container %s: %s %s",
                    handle.name,
                    response.status,
                    text,
                )
