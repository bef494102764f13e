"""
Authentication for the Auth0 Management API.
"""

from .authentication import Auth0Authenticator

__all__ = ["Auth0Authenticator"]
