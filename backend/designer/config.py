"""
Application configuration using Pydantic Settings.

Supports environment variables and .env files for configuration.
"""

from functools import lru_cache
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings


class EnvironmentSettings(BaseModel):
    """A deployment target environment."""

    name: str
    hostname: str
    type: Literal["test", "production"] = "test"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Working copies
    repository_location: Path = Path("./repos")
    deployments_location: Path = Path("./data/deployments")
    default_language: str = "nb"
    default_developer: str = "testUser"
    developer_header: str = "X-Developer"

    # File upload limits
    max_upload_size_mb: int = 10

    # OAuth2/OIDC
    oidc_enabled: bool = False
    oidc_issuer_url: str = ""
    oidc_audience: str = ""

    # Azure DevOps build and release pipelines
    azure_devops_base_url: str = "https://dev.azure.com/brreg/altinn-studio"
    azure_devops_token: str | None = None
    azure_devops_api_version: str = "5.1"
    build_definition_id: int = 69
    deploy_definition_id: int = 81

    environments: list[EnvironmentSettings] = [
        EnvironmentSettings(name="at22", hostname="at22.altinn.cloud"),
        EnvironmentSettings(name="tt02", hostname="tt02.altinn.no"),
        EnvironmentSettings(name="production", hostname="altinn.no", type="production"),
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            value = v.strip()
            if value.startswith("["):
                try:
                    parsed = json.loads(value)
                    if isinstance(parsed, list):
                        return [str(origin).strip() for origin in parsed if str(origin).strip()]
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("repository_location", "deployments_location", mode="before")
    @classmethod
    def parse_path(cls, v):
        if isinstance(v, str):
            return Path(v)
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
