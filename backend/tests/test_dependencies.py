"""
Tests for request-scoped dependencies.
"""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from designer.dependencies import (
    PermissionChecker,
    get_developer,
    validate_app_name,
    validate_org,
)


def _request(headers: dict | None = None) -> MagicMock:
    request = MagicMock()
    request.headers = headers or {}
    return request


class TestGetDeveloper:
    """Tests for developer resolution."""

    @pytest.mark.asyncio
    async def test_token_username_wins(self, settings):
        user = {"preferred_username": "kari", "sub": "123"}
        developer = await get_developer(_request({"X-Developer": "anna"}), user, settings)
        assert developer == "kari"

    @pytest.mark.asyncio
    async def test_header_used_without_token(self, settings):
        developer = await get_developer(_request({"X-Developer": " anna "}), None, settings)
        assert developer == "anna"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("developer", ["..", ".", "../../escaped", "a\\b"])
    async def test_header_must_be_a_single_directory(self, settings, developer):
        with pytest.raises(HTTPException) as exc_info:
            await get_developer(_request({"X-Developer": developer}), None, settings)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_token_username_must_be_a_single_directory(self, settings):
        with pytest.raises(HTTPException) as exc_info:
            await get_developer(_request(), {"preferred_username": "../root"}, settings)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_default_developer(self, settings):
        assert await get_developer(_request(), None, settings) == "testUser"


class TestValidateAppName:
    """Tests for app name validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["test-app", "abc", "a1-2b"])
    async def test_valid_names(self, name):
        assert await validate_app_name(name) == name

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name", ["datamodels", "ab", "Test", "1app", "app-", "a" * 31, "my_app"]
    )
    async def test_invalid_names(self, name):
        with pytest.raises(HTTPException) as exc_info:
            await validate_app_name(name)
        assert exc_info.value.status_code == 400


class TestValidateOrg:
    """Tests for organisation validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("org", ["ttd", "skd", "digdir.test"])
    async def test_valid_orgs(self, org):
        assert await validate_org(org) == org

    @pytest.mark.asyncio
    @pytest.mark.parametrize("org", ["..", ".", "ttd/..", "ttd\\..", ""])
    async def test_invalid_orgs(self, org):
        with pytest.raises(HTTPException) as exc_info:
            await validate_org(org)
        assert exc_info.value.status_code == 400


class TestPermissionChecker:
    """Tests for PermissionChecker."""

    @pytest.mark.asyncio
    async def test_auth_disabled_allows_all(self):
        assert await PermissionChecker(["deploy"])(None) is True

    @pytest.mark.asyncio
    async def test_direct_permission(self):
        user = {"permissions": ["repo:read"]}
        assert await PermissionChecker(["repo:read"])(user) is True

    @pytest.mark.asyncio
    async def test_role_permission(self):
        user = {"roles": ["role:deploy"]}
        assert await PermissionChecker(["deploy"])(user) is True

    @pytest.mark.asyncio
    async def test_missing_permission(self):
        with pytest.raises(HTTPException) as exc_info:
            await PermissionChecker(["repo:write"])({"permissions": ["repo:read"]})
        assert exc_info.value.status_code == 403
