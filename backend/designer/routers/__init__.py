"""
API routers.
"""

from designer.routers import datamodels, deployments, texts

__all__ = ["datamodels", "deployments", "texts"]
