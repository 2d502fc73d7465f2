"""
Shared fixtures: settings pointing at a temporary working copy and an API
client with the settings dependency overridden.
"""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from designer.config import Settings, get_settings
from designer.main import app

ORG = "ttd"
APP = "test-app"
DEVELOPER = "testUser"


@pytest.fixture
def minimal_schema() -> dict:
    """Smallest schema the data model pipeline accepts."""
    return {
        "properties": {"root": {"$ref": "#/definitions/rootType"}},
        "definitions": {"rootType": {"properties": {"keyword": {"type": "string"}}}},
    }


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with working copies and deployment records under tmp_path."""
    return Settings(
        _env_file=None,
        repository_location=tmp_path / "repos",
        deployments_location=tmp_path / "deployments",
    )


@pytest.fixture
def app_path(settings: Settings) -> Path:
    """A working copy with Norwegian and English texts and app metadata."""
    path = settings.repository_location / DEVELOPER / ORG / APP
    texts = path / "App" / "config" / "texts"
    texts.mkdir(parents=True)
    (path / "App" / "models").mkdir(parents=True)

    (texts / "resource.nb.json").write_text(
        json.dumps(
            {
                "language": "nb",
                "resources": [
                    {"id": "appName", "value": "Testapp"},
                    {"id": "greeting", "value": "Hei"},
                ],
            }
        ),
        encoding="utf-8",
    )
    (texts / "resource.en.json").write_text(
        json.dumps(
            {
                "language": "en",
                "resources": [{"id": "greeting", "value": "Hello"}],
            }
        ),
        encoding="utf-8",
    )
    (path / "App" / "config" / "applicationmetadata.json").write_text(
        json.dumps(
            {
                "id": f"{ORG}/{APP}",
                "org": ORG,
                "title": {"nb": "Testapp"},
                "dataTypes": [{"id": "ref-data-as-pdf", "allowedContentTypes": ["application/pdf"]}],
                "partyTypesAllowed": {"person": True},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def client(settings: Settings):
    """API client using the temporary settings."""
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
