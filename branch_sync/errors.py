"""Error taxonomy for a synchronization run."""
from typing import Sequence


class SyncError(Exception):
    """Base class for orchestrator errors."""


class ConfigurationError(SyncError):
    pass


class SecretNotFoundError(SyncError):
    def __init__(self, name: str):
        super().__init__(f"Secret not found: {name}")
        self.name = name


class AccessDeniedError(SyncError):
    def __init__(self, name: str, reason: str = ""):
        message = f"Access denied to secret: {name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.name = name


class MalformedTenantListError(SyncError):
    """The tenant list secret did not decode to an array of descriptor objects."""


class GitCommandError(SyncError):
    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {' '.join(self.command)} exited with {returncode}: {stderr.strip()}")
