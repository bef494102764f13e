"""
Configuration management for the tenant config backup.
"""

from .config_loader import ConfigLoader

__all__ = ["ConfigLoader"]
