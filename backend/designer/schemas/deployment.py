"""
Pydantic models for releases, deployments and CI builds.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

BuildStatus = Literal[
    "none", "notStarted", "inProgress", "completed", "cancelling", "postponed"
]
BuildResult = Literal["none", "succeeded", "partiallySucceeded", "failed", "canceled"]


class Build(BaseModel):
    """A build or deploy pipeline run in the CI system."""

    id: str
    status: BuildStatus = "notStarted"
    result: BuildResult = "none"
    started: datetime | None = None
    finished: datetime | None = None


class ReleaseRequest(BaseModel):
    """Request for creating a release (building an image for a commit)."""

    tagName: str
    name: str
    body: str = ""
    targetCommitish: str


class Release(BaseModel):
    """A tagged build of an app."""

    id: str
    tagName: str
    name: str
    body: str = ""
    targetCommitish: str
    build: Build
    created: datetime
    createdBy: str
    org: str
    app: str


class DeploymentRequest(BaseModel):
    """Request for deploying a release to an environment."""

    tagName: str
    envName: str


class Deployment(BaseModel):
    """A deployment of a release to an environment."""

    id: str
    tagName: str
    envName: str
    build: Build
    created: datetime
    createdBy: str
    org: str
    app: str


class ReleaseListResponse(BaseModel):
    """Response for release listing endpoint."""

    results: list[Release]
    total: int


class DeploymentListResponse(BaseModel):
    """Response for deployment listing endpoint."""

    results: list[Deployment]
    total: int


class BuildHookResource(BaseModel):
    id: str | int


class BuildStatusHook(BaseModel):
    """Service hook payload sent by the CI system when a build changes."""

    eventType: str | None = None
    resource: BuildHookResource

    model_config = {"extra": "allow"}


class BuildHookResponse(BaseModel):
    updated: bool = False
    kind: Literal["release", "deployment"] | None = None
    build: Build | None = Field(default=None)
