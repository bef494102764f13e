"""
Auth0 tenant config export.
Renders a tenant's Management API configuration into a deterministic directory tree.
"""
__version__ = "1.0.0"
from .dumper import ConfigMaterializer, MaterializeOptions, TenantConfigDumper
from .errors import RenderError

__all__ = ["ConfigMaterializer", "MaterializeOptions", "TenantConfigDumper", "RenderError"]
