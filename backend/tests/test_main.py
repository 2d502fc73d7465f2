"""
Tests for the application shell and configuration.
"""

from designer.config import Settings


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_readiness_without_repositories(self, client):
        response = client.get("/health/readiness")
        assert response.status_code == 503

    def test_readiness(self, client, app_path):
        response = client.get("/health/readiness")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_liveness_and_startup(self, client):
        assert client.get("/health/liveness").json() == {"status": "alive"}
        assert client.get("/health/startup").json() == {"status": "started"}


class TestSettings:
    """Tests for Settings."""

    def test_cors_origins_from_string(self):
        settings = Settings(_env_file=None, cors_origins="http://a.no, http://b.no")
        assert settings.cors_origins == ["http://a.no", "http://b.no"]

    def test_default_environments(self):
        settings = Settings(_env_file=None)
        assert "tt02" in [e.name for e in settings.environments]
