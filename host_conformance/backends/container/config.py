"""Configuration for the container backend."""

import os

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"


class ContainerBackendConfig(BaseModel):
    """Configuration for the container backend.

    ``docker_host`` follows the ``DOCKER_HOST`` convention: ``unix://`` for a
    socket path, ``tcp://`` or ``http://`` for a daemon reachable over TCP.
    """

    model_config = ConfigDict(extra="forbid")

    docker_host: str = Field(
        default_factory=lambda: os.environ.get("DOCKER_HOST", DEFAULT_DOCKER_HOST)
    )
    api_version: str = "v1.43"
    pull: bool = Field(default=True, description="Pull images missing locally")
    name_prefix: str = "host-conformance"
