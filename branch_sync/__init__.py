"""Multi-tenant branch synchronization of identity-provider config snapshots."""

__all__ = [
    "config",
    "errors",
    "secrets",
    "tenants",
    "git",
    "repository",
    "synchronizer",
    "pipeline",
    "entrypoints",
]
