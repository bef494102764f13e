"""
Configuration loader for the tenant config backup.
Supports per-stage dotenv files and configuration validation.
"""

import json
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s: %(message)s"


class ConfigLoader:
    """Loads and validates configuration from JSON files."""

    REQUIRED_SECTIONS = ["environment", "paths", "git", "secrets", "export"]

    def __init__(self, config_file: str = "configs/config.json", environment: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_file: Path to configuration file, relative to the project root
                unless absolute
            environment: Stage name ("dev", "prod", ...); falls back to STAGE
        """
        self.config_file = config_file
        self.config: Dict[str, Any] = {}
        self.environment = environment or os.getenv("STAGE") or "dev"
        self.base_path = Path(__file__).parent.parent.parent  # Go up to project root
        self._load_environment_config()
        self._load_config()
        self._validate_config()

    def _load_environment_config(self):
        """Load stage-specific environment files"""
        # The main .env may pick the stage
        main_env_path = self.base_path / 'envs' / '.env'
        if main_env_path.exists():
            load_dotenv(main_env_path, override=False)
            logger.info(f"Loaded main env config from {main_env_path}")

            env_from_file = os.getenv('STAGE')
            if env_from_file:
                self.environment = env_from_file

        env_file_path = self.base_path / 'envs' / f'.env.{self.environment}'
        if env_file_path.exists():
            load_dotenv(env_file_path, override=True)
            logger.info(f"Loaded {self.environment} specific config from {env_file_path}")
        else:
            logger.debug(f"Environment config file not found: {env_file_path}")

    def _load_config(self):
        """Load configuration from JSON file."""
        config_path = Path(self.config_file)
        if not config_path.is_absolute():
            config_path = self.base_path / config_path
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                self.config = json.load(f)
            logger.info(f"Loaded configuration from: {config_path}")
        except FileNotFoundError:
            raise ValueError(f"Configuration file {config_path} not found")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def _validate_config(self):
        """Validate required configuration sections."""
        for section in self.REQUIRED_SECTIONS:
            if section not in self.config:
                raise ValueError(f"Missing required configuration section: {section}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path (e.g., "export.rate_limiting.rate_limit_per_minute")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_export_config(self) -> Dict[str, Any]:
        """Get Management API export configuration."""
        return self.config["export"]

    def get_environment(self) -> str:
        """Get current stage."""
        return self.environment

    def is_debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return self.get("environment.debug", False)

    def get_log_level(self) -> str:
        return (os.getenv("LOG_LEVEL") or self.get("environment.log_level", "INFO")).upper()

    def setup_logging(self):
        """Setup logging based on configuration."""
        level = getattr(logging, self.get_log_level(), logging.INFO)
        if self.is_debug_mode():
            level = logging.DEBUG

        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler()],
            force=True,
        )
