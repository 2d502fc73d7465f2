"""
Deployment Service.

Releases build a container image for a commit of an app; deployments roll a
released image out to an environment. Both run as Azure DevOps pipelines and
are recorded as JSON documents per app:
{deployments_location}/{org}/{app}/{releases,deployments}.json
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

import httpx

from designer.clients.azure_devops_client import AzureDevOpsClient
from designer.config import EnvironmentSettings
from designer.schemas.deployment import (
    Build,
    BuildHookResponse,
    Deployment,
    DeploymentRequest,
    Release,
    ReleaseRequest,
)
from designer.utils.file_names import as_path_segment
from designer.utils.json_io import dump_json

logger = logging.getLogger(__name__)

RELEASES_FILE = "releases.json"
DEPLOYMENTS_FILE = "deployments.json"

TAG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]{0,127}$")

SortDirection = Literal["asc", "desc"]


class DeploymentService:
    """
    Service for creating and tracking releases and deployments.
    """

    def __init__(
        self,
        storage_location: Path,
        client: AzureDevOpsClient,
        build_definition_id: int,
        deploy_definition_id: int,
        environments: list[EnvironmentSettings],
    ):
        self.storage_location = Path(storage_location)
        self.client = client
        self.build_definition_id = build_definition_id
        self.deploy_definition_id = deploy_definition_id
        self.environments = environments

    def _path(self, org: str, app: str, file_name: str) -> Path:
        return (
            self.storage_location
            / as_path_segment(org, "organisation")
            / as_path_segment(app, "app name")
            / file_name
        )

    def _load(self, path: Path) -> list[dict]:
        if not path.is_file():
            return []
        return json.loads(path.read_text(encoding="utf-8"))

    def _save(self, path: Path, records: list[Release] | list[Deployment]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            dump_json([r.model_dump(mode="json") for r in records]), encoding="utf-8"
        )

    def _load_releases(self, org: str, app: str) -> list[Release]:
        return [
            Release.model_validate(r)
            for r in self._load(self._path(org, app, RELEASES_FILE))
        ]

    def _load_deployments(self, org: str, app: str) -> list[Deployment]:
        return [
            Deployment.model_validate(d)
            for d in self._load(self._path(org, app, DEPLOYMENTS_FILE))
        ]

    async def _refresh(self, records: list[Release] | list[Deployment]) -> bool:
        """Refresh builds that are not completed. Returns whether any changed."""
        changed = False
        for record in records:
            if record.build.status == "completed":
                continue
            try:
                build = await self.client.get_build(record.build.id)
            except httpx.HTTPError as e:
                logger.warning(f"Could not refresh build {record.build.id}: {e}")
                continue
            if build != record.build:
                record.build = build
                changed = True
        return changed

    @staticmethod
    def _order(records: list, top: int | None, sort_direction: SortDirection) -> list:
        ordered = sorted(
            records, key=lambda r: r.created, reverse=sort_direction == "desc"
        )
        return ordered[:top] if top is not None else ordered

    def get_environments(self) -> list[EnvironmentSettings]:
        return self.environments

    def get_environment(self, name: str) -> EnvironmentSettings | None:
        for environment in self.environments:
            if environment.name.lower() == name.lower():
                return environment
        return None

    async def get_releases(
        self,
        org: str,
        app: str,
        top: int | None = None,
        sort_direction: SortDirection = "desc",
    ) -> list[Release]:
        """
        List releases of an app, refreshing builds still in progress.

        Args:
            org: Organisation
            app: App name
            top: Maximum number of releases to return
            sort_direction: Order by creation time

        Returns:
            Releases in the requested order
        """
        releases = self._load_releases(org, app)
        if await self._refresh(releases):
            self._save(self._path(org, app, RELEASES_FILE), releases)
        return self._order(releases, top, sort_direction)

    async def create_release(
        self, org: str, app: str, developer: str, request: ReleaseRequest
    ) -> Release:
        """
        Queue a release build.

        Raises:
            ValueError: If the tag is invalid or already used
            httpx.HTTPError: If the build could not be queued
        """
        tag_name = request.tagName
        if not TAG_PATTERN.match(tag_name):
            raise ValueError(f"Invalid tag name '{tag_name}'")

        releases = self._load_releases(org, app)
        if any(r.tagName == tag_name for r in releases):
            raise ValueError(f"A release with tag '{tag_name}' already exists")

        build = await self.client.queue_build(
            self.build_definition_id,
            {
                "APP_OWNER": org,
                "APP_REPO": app,
                "APP_DEPLOYMENT_TAG": tag_name,
                "APP_COMMIT_ID": request.targetCommitish,
            },
        )

        release = Release(
            id=str(uuid.uuid4()),
            tagName=tag_name,
            name=request.name,
            body=request.body,
            targetCommitish=request.targetCommitish,
            build=build,
            created=datetime.now(timezone.utc),
            createdBy=developer,
            org=org,
            app=app,
        )
        releases.append(release)
        self._save(self._path(org, app, RELEASES_FILE), releases)
        logger.info(f"Created release {tag_name} for {org}/{app} (build {build.id})")
        return release

    async def get_deployments(
        self,
        org: str,
        app: str,
        top: int | None = None,
        sort_direction: SortDirection = "desc",
    ) -> list[Deployment]:
        """List deployments of an app, refreshing builds still in progress."""
        deployments = self._load_deployments(org, app)
        if await self._refresh(deployments):
            self._save(self._path(org, app, DEPLOYMENTS_FILE), deployments)
        return self._order(deployments, top, sort_direction)

    async def create_deployment(
        self, org: str, app: str, developer: str, request: DeploymentRequest
    ) -> Deployment:
        """
        Queue a deployment of a succeeded release.

        Raises:
            ValueError: If the environment is unknown or the release has not
                been built successfully
            httpx.HTTPError: If the deploy pipeline could not be queued
        """
        environment = self.get_environment(request.envName)
        if environment is None:
            raise ValueError(f"Unknown environment '{request.envName}'")

        releases = self._load_releases(org, app)
        release = next((r for r in releases if r.tagName == request.tagName), None)
        if release is None:
            raise ValueError(f"No release with tag '{request.tagName}'")

        if await self._refresh([release]):
            self._save(self._path(org, app, RELEASES_FILE), releases)
        if release.build.result != "succeeded":
            raise ValueError(f"Release '{request.tagName}' has not been built successfully")

        build = await self.client.queue_build(
            self.deploy_definition_id,
            {
                "APP_OWNER": org,
                "APP_REPO": app,
                "APP_DEPLOYMENT_TAG": release.tagName,
                "APP_ENVIRONMENT": environment.name,
                "HOSTNAME": environment.hostname,
            },
        )

        deployment = Deployment(
            id=str(uuid.uuid4()),
            tagName=release.tagName,
            envName=environment.name,
            build=build,
            created=datetime.now(timezone.utc),
            createdBy=developer,
            org=org,
            app=app,
        )
        deployments = self._load_deployments(org, app)
        deployments.append(deployment)
        self._save(self._path(org, app, DEPLOYMENTS_FILE), deployments)
        logger.info(
            f"Deploying {release.tagName} of {org}/{app} to {environment.name} "
            f"(build {build.id})"
        )
        return deployment

    async def update_build_status(self, build_id: str) -> BuildHookResponse:
        """
        Refresh the release or deployment that owns a build.

        Called from the CI service hook when a build changes state.

        Raises:
            httpx.HTTPError: If the build could not be read
        """
        for kind, file_name, model in (
            ("release", RELEASES_FILE, Release),
            ("deployment", DEPLOYMENTS_FILE, Deployment),
        ):
            for path in sorted(self.storage_location.glob(f"*/*/{file_name}")):
                records = [model.model_validate(r) for r in self._load(path)]
                record = next((r for r in records if r.build.id == build_id), None)
                if record is None:
                    continue

                build: Build = await self.client.get_build(build_id)
                record.build = build
                self._save(path, records)
                logger.info(f"Build {build_id} of {kind} {record.id} is {build.status}")
                return BuildHookResponse(updated=True, kind=kind, build=build)

        logger.warning(f"Build status hook for unknown build {build_id}")
        return BuildHookResponse(updated=False)
