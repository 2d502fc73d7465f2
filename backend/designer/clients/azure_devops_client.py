"""
Azure DevOps API client for build and deploy pipelines.

Releases and deployments are run as Azure DevOps build definitions; this
client queues runs and reads their status.
"""

import json
import logging
from datetime import datetime
from typing import Any

import httpx

from designer.schemas.deployment import Build

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # Azure DevOps sends up to seven fractional digits.
    if "." in value:
        head, _, tail = value.partition(".")
        digits = "".join(c for c in tail if c.isdigit())
        zone = tail[len(digits):]
        value = f"{head}.{digits[:6].ljust(6, '0')}{zone}"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def build_from_response(data: dict[str, Any]) -> Build:
    """Map an Azure DevOps build resource to a Build."""
    return Build(
        id=str(data["id"]),
        status=data.get("status") or "none",
        result=data.get("result") or "none",
        started=_parse_timestamp(data.get("startTime")),
        finished=_parse_timestamp(data.get("finishTime")),
    )


class AzureDevOpsClient:
    """
    Async HTTP client for the Azure DevOps build API.

    Features:
    - Personal access token authentication
    - Injectable transport for testing
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        api_version: str = "5.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.api_version = api_version
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Get default headers for API requests."""
        headers = {
            "Accept": "application/json",
            "User-Agent": "Altinn-Studio-Designer/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=30.0,
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def queue_build(
        self, definition_id: int, parameters: dict[str, str]
    ) -> Build:
        """
        Queue a run of a build definition.

        Args:
            definition_id: Build definition to run
            parameters: Pipeline variables passed to the run

        Returns:
            The queued build

        Raises:
            httpx.HTTPError: On transport or HTTP errors
        """
        client = await self._get_client()
        response = await client.post(
            "/_apis/build/builds",
            params={"api-version": self.api_version},
            json={
                "definition": {"id": definition_id},
                "parameters": json.dumps(parameters),
            },
        )
        response.raise_for_status()
        build = build_from_response(response.json())
        logger.info(f"Queued build {build.id} of definition {definition_id}")
        return build

    async def get_build(self, build_id: str) -> Build:
        """
        Get the current state of a build.

        Raises:
            httpx.HTTPError: On transport or HTTP errors
        """
        client = await self._get_client()
        response = await client.get(
            f"/_apis/build/builds/{build_id}",
            params={"api-version": self.api_version},
        )
        response.raise_for_status()
        return build_from_response(response.json())

    async def __aenter__(self) -> "AzureDevOpsClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
