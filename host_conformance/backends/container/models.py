"""Pydantic models for Docker Engine API responses."""

from collections.abc import Sequence

from pydantic import BaseModel


class ContainerCreateResponse(BaseModel):
    """Response from create container API."""

    Id: str
    Warnings: Sequence[str] | None = None


class WaitError(BaseModel):
    """Error reported by the wait API."""

    Message: str | None = None


class ContainerWaitResponse(BaseModel):
    """Response from wait container API."""

    StatusCode: int
    Error: WaitError | None = None


class PullProgress(BaseModel):
    """One JSON line of the streamed create image API response."""

    status: str | None = None
    error: str | None = None
