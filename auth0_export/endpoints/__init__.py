"""
Resource definitions for the Auth0 Management API.
"""

from .resource_endpoints import get_resource_endpoints

__all__ = ["get_resource_endpoints"]
