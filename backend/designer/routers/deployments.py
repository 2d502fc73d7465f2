"""
Release and deployment endpoints.

Releases build an app for a commit; deployments roll a release out to one
of the configured environments. Both run as Azure DevOps pipelines.
"""

import logging
from typing import Annotated, Literal

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from designer.config import EnvironmentSettings
from designer.dependencies import (
    get_deployment_service,
    get_developer,
    require_deploy,
    require_read,
    validate_app_name,
    validate_org,
)
from designer.schemas.deployment import (
    BuildHookResponse,
    BuildStatusHook,
    Deployment,
    DeploymentListResponse,
    DeploymentRequest,
    Release,
    ReleaseListResponse,
    ReleaseRequest,
)
from designer.services.deployments import DeploymentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/designer/api/{org}/{app}",
    tags=["deployments"],
    dependencies=[Depends(validate_org), Depends(validate_app_name)],
)

# Routes that are not scoped to a single app
global_router = APIRouter(prefix="/designer/api", tags=["deployments"])

Developer = Annotated[str, Depends(get_developer)]
Deployments = Annotated[DeploymentService, Depends(get_deployment_service)]
Top = Annotated[int | None, Query(ge=1, description="Maximum number of results")]
SortDirection = Annotated[
    Literal["asc", "desc"], Query(alias="sortDirection", description="Order by creation time")
]


@router.get(
    "/releases",
    response_model=ReleaseListResponse,
    dependencies=[Depends(require_read)],
)
async def get_releases(
    org: str,
    app: str,
    service: Deployments,
    top: Top = None,
    sort_direction: SortDirection = "desc",
) -> ReleaseListResponse:
    """
    List releases of the app.

    Builds still in progress are refreshed from the CI system.
    """
    try:
        releases = await service.get_releases(org, app, top, sort_direction)
        return ReleaseListResponse(results=releases, total=len(releases))
    except Exception as e:
        logger.exception(f"Failed to list releases for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "/releases",
    response_model=Release,
    status_code=201,
    dependencies=[Depends(require_deploy)],
)
async def create_release(
    org: str,
    app: str,
    request: ReleaseRequest,
    developer: Developer,
    service: Deployments,
) -> Release:
    """Queue a release build for a commit."""
    try:
        return await service.create_release(org, app, developer, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        logger.exception(f"CI system rejected release {request.tagName} for {org}/{app}")
        raise HTTPException(status_code=502, detail=f"Could not queue build: {e}")
    except Exception as e:
        logger.exception(f"Failed to create release for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/deployments",
    response_model=DeploymentListResponse,
    dependencies=[Depends(require_read)],
)
async def get_deployments(
    org: str,
    app: str,
    service: Deployments,
    top: Top = None,
    sort_direction: SortDirection = "desc",
) -> DeploymentListResponse:
    """List deployments of the app."""
    try:
        deployments = await service.get_deployments(org, app, top, sort_direction)
        return DeploymentListResponse(results=deployments, total=len(deployments))
    except Exception as e:
        logger.exception(f"Failed to list deployments for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "/deployments",
    response_model=Deployment,
    status_code=201,
    dependencies=[Depends(require_deploy)],
)
async def create_deployment(
    org: str,
    app: str,
    request: DeploymentRequest,
    developer: Developer,
    service: Deployments,
) -> Deployment:
    """Deploy a successfully built release to an environment."""
    try:
        return await service.create_deployment(org, app, developer, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        logger.exception(f"CI system rejected deployment of {request.tagName} for {org}/{app}")
        raise HTTPException(status_code=502, detail=f"Could not queue deployment: {e}")
    except Exception as e:
        logger.exception(f"Failed to create deployment for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@global_router.post("/hooks/build-status", response_model=BuildHookResponse)
async def build_status_hook(
    hook: BuildStatusHook,
    service: Deployments,
) -> BuildHookResponse:
    """
    Service hook called by the CI system when a build changes state.
    """
    try:
        return await service.update_build_status(str(hook.resource.id))
    except httpx.HTTPError as e:
        logger.exception(f"Could not read build {hook.resource.id}")
        raise HTTPException(status_code=502, detail=f"Could not read build: {e}")


@global_router.get(
    "/environments",
    response_model=list[EnvironmentSettings],
    dependencies=[Depends(require_read)],
)
async def get_environments(service: Deployments) -> list[EnvironmentSettings]:
    """List the environments apps can be deployed to."""
    return service.get_environments()
