"""
External API clients.
"""

from designer.clients.azure_devops_client import AzureDevOpsClient

__all__ = ["AzureDevOpsClient"]
