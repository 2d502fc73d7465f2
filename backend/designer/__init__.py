"""
Altinn Studio Designer API

Backend for the Altinn Studio designer: text resources, data models and
deployments of apps kept in Git working copies.
"""

__version__ = "1.0.0"
