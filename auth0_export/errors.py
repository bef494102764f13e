"""Errors raised while rendering a tenant's configuration."""


class RenderError(Exception):
    """The Management API could not be read, so no snapshot was rendered."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status
