"""
Pydantic schemas for API request/response models.
"""

from designer.schemas.datamodel import (
    AltinnCoreFile,
    ElementMetadata,
    ModelMetadata,
    Restriction,
)
from designer.schemas.deployment import (
    Build,
    Deployment,
    DeploymentRequest,
    Release,
    ReleaseRequest,
)
from designer.schemas.text_resource import (
    TextIdMutation,
    TextResource,
    TextResourceElement,
)

__all__ = [
    "AltinnCoreFile",
    "ElementMetadata",
    "ModelMetadata",
    "Restriction",
    "Build",
    "Deployment",
    "DeploymentRequest",
    "Release",
    "ReleaseRequest",
    "TextIdMutation",
    "TextResource",
    "TextResourceElement",
]
