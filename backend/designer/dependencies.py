"""
FastAPI dependency injection setup.

Provides factory functions for service instances used across routes.
"""

from functools import lru_cache
import re
from typing import Annotated

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError, PyJWKError

from designer.clients.azure_devops_client import AzureDevOpsClient
from designer.config import Settings, get_settings
from designer.services.deployments import DeploymentService
from designer.services.repository import AltinnRepositoryService
from designer.services.schema_model import SchemaModelService
from designer.services.texts import TextResourceService
from designer.utils.file_names import as_path_segment

# Security scheme for JWT authentication
security = HTTPBearer(auto_error=False)

# Lowercase, 3-30 characters, not starting with a digit or hyphen, and not
# the reserved "datamodels" name.
APP_NAME_PATTERN = re.compile(r"^(?!datamodels$)[a-z][a-z0-9-]{1,28}[a-z0-9]$")


def get_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AltinnRepositoryService:
    """Get the working copy file service."""
    return AltinnRepositoryService(settings.repository_location)


def get_text_service(
    repository: Annotated[AltinnRepositoryService, Depends(get_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TextResourceService:
    """Get the text resource service."""
    return TextResourceService(repository, default_language=settings.default_language)


def get_schema_model_service(
    repository: Annotated[AltinnRepositoryService, Depends(get_repository)],
) -> SchemaModelService:
    """Get the data model service."""
    return SchemaModelService(repository)


@lru_cache
def get_azure_devops_client() -> AzureDevOpsClient:
    """Get cached Azure DevOps client instance."""
    settings = get_settings()
    return AzureDevOpsClient(
        base_url=settings.azure_devops_base_url,
        token=settings.azure_devops_token,
        api_version=settings.azure_devops_api_version,
    )


def get_deployment_service(
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[AzureDevOpsClient, Depends(get_azure_devops_client)],
) -> DeploymentService:
    """Get the release and deployment service."""
    return DeploymentService(
        storage_location=settings.deployments_location,
        client=client,
        build_definition_id=settings.build_definition_id,
        deploy_definition_id=settings.deploy_definition_id,
        environments=settings.environments,
    )


class OIDCValidator:
    """
    OIDC token validator for JWT authentication.

    Validates tokens against the configured OIDC provider.
    """

    def __init__(self, settings: Settings):
        self.issuer = settings.oidc_issuer_url
        self.audience = settings.oidc_audience
        self._jwks_cache: jwt.PyJWKSet | None = None

    async def _get_jwks(self) -> jwt.PyJWKSet:
        """Fetch and cache JWKS from the OIDC provider."""
        if self._jwks_cache:
            return self._jwks_cache

        async with httpx.AsyncClient() as client:
            # Get OpenID configuration
            well_known_url = f"{self.issuer}/.well-known/openid-configuration"
            config_response = await client.get(well_known_url, timeout=10.0)
            config_response.raise_for_status()
            config = config_response.json()

            # Get JWKS
            jwks_response = await client.get(config["jwks_uri"], timeout=10.0)
            jwks_response.raise_for_status()
            self._jwks_cache = jwt.PyJWKSet.from_dict(jwks_response.json())

        return self._jwks_cache

    async def validate_token(
        self,
        credentials: HTTPAuthorizationCredentials | None,
    ) -> dict:
        """
        Validate a JWT token.

        Args:
            credentials: HTTP authorization credentials

        Returns:
            Decoded token payload

        Raises:
            HTTPException: If token is invalid or missing
        """
        if credentials is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            token = credentials.credentials
            jwks = await self._get_jwks()

            key_id = jwt.get_unverified_header(token).get("kid")
            signing_key = next((k for k in jwks.keys if k.key_id == key_id), None)
            if signing_key is None:
                raise InvalidTokenError(f"Unknown signing key '{key_id}'")

            # Decode and validate the token
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_signature": True,
                    "verify_aud": True,
                    "verify_iss": True,
                    "verify_exp": True,
                },
            )
            return payload

        except (InvalidTokenError, PyJWKError) as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=str(e),
                headers={"WWW-Authenticate": "Bearer"},
            )


@lru_cache
def get_oidc_validator() -> OIDCValidator | None:
    """Get OIDC validator if authentication is enabled."""
    settings = get_settings()
    if not settings.oidc_enabled:
        return None
    return OIDCValidator(settings)


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Security(security)
    ] = None,
    validator: Annotated[OIDCValidator | None, Depends(get_oidc_validator)] = None,
) -> dict | None:
    """
    Get the current authenticated user.

    Returns None if authentication is disabled.
    """
    if validator is None:
        return None  # Auth disabled

    return await validator.validate_token(credentials)


async def get_developer(
    request: Request,
    user: Annotated[dict | None, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """
    Resolve the developer whose working copy a request operates on.

    Order: token username, developer header, configured default.
    """
    claims = user or {}
    username = claims.get("preferred_username") or claims.get("sub")
    header_value = (request.headers.get(settings.developer_header) or "").strip()
    developer = username or header_value or settings.default_developer

    try:
        return as_path_segment(developer, "developer")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


async def validate_org(org: str) -> str:
    """Reject organisation names that cannot be a directory name."""
    try:
        return as_path_segment(org, "organisation")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{org} is an invalid organisation name.",
        )


async def validate_app_name(app: str) -> str:
    """Reject app names that cannot be Altinn app repositories."""
    if not APP_NAME_PATTERN.match(app):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{app} is an invalid app name.",
        )
    return app


class PermissionChecker:
    """
    Permission checker for role-based access control.

    Use as a dependency to require specific permissions on endpoints.
    """

    def __init__(self, required_permissions: list[str]):
        self.required_permissions = required_permissions

    async def __call__(
        self,
        user: Annotated[dict | None, Depends(get_current_user)],
    ) -> bool:
        """Check if the user has required permissions."""
        if user is None:
            # Auth disabled, allow all
            return True

        user_permissions = user.get("permissions", [])
        user_roles = user.get("roles", [])

        for perm in self.required_permissions:
            # Check direct permissions
            if perm in user_permissions:
                continue

            # Check role-based permissions
            if any(f"role:{perm}" in role for role in user_roles):
                continue

            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{perm}' required",
            )

        return True


# Common permission dependencies
require_read = PermissionChecker(["repo:read"])
require_write = PermissionChecker(["repo:write"])
require_deploy = PermissionChecker(["deploy"])
