"""
Business logic services.
"""

from designer.services.deployments import DeploymentService
from designer.services.repository import AltinnRepositoryService
from designer.services.schema_model import SchemaModelService
from designer.services.texts import TextResourceService

__all__ = [
    "AltinnRepositoryService",
    "DeploymentService",
    "SchemaModelService",
    "TextResourceService",
]
