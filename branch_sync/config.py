"""Settings for a synchronization run, layered over the JSON config."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from auth0_export.config import ConfigLoader

from .errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class GitSettings:
    user_name: str
    user_email: str
    commit_message: str
    host: str
    host_ips: List[str]
    host_public_key: str

    @property
    def known_hosts_entry(self) -> str:
        return f"{','.join([self.host] + list(self.host_ips))} {self.host_public_key}\n"


@dataclass
class SyncSettings:
    config_loader: ConfigLoader
    stage: str
    repository_url: str
    operating_path: Path
    repo_dir: str
    known_hosts_file: str
    private_key_file: str
    git: GitSettings
    private_key_secret: str
    tenants_secret: str
    secret_provider: str = "ssm"
    secrets_file: Optional[str] = None
    keyword_replacements: Dict[str, str] = field(default_factory=dict)
    fail_fast: bool = False

    @property
    def repo_path(self) -> Path:
        return self.operating_path / self.repo_dir

    @property
    def known_hosts_path(self) -> Path:
        return self.operating_path / self.known_hosts_file

    @property
    def private_key_path(self) -> Path:
        return self.operating_path / self.private_key_file


def _parse_bool(value, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_mappings(raw: Optional[str]) -> Dict[str, str]:
    if not raw:
        return {}
    try:
        mappings = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"AUTH0_KEYWORD_REPLACE_MAPPINGS is not valid JSON: {e}") from e
    if not isinstance(mappings, dict):
        raise ConfigurationError("AUTH0_KEYWORD_REPLACE_MAPPINGS must be a JSON object")
    return {str(key): str(value) for key, value in mappings.items()}


def load_sync_settings(
    config_file: str = "configs/config.json",
    stage: Optional[str] = None,
    config_loader: Optional[ConfigLoader] = None,
) -> SyncSettings:
    """Load run settings with env-var overrides."""

    try:
        loader = config_loader or ConfigLoader(config_file=config_file, environment=stage)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    stage = stage or loader.environment

    stage_secrets = loader.get(f"secrets.stages.{stage}")
    if not stage_secrets:
        raise ConfigurationError(f"No secret names configured for stage {stage!r}")
    missing = [key for key in ("github_private_key", "tenants") if not stage_secrets.get(key)]
    if missing:
        raise ConfigurationError(f"Stage {stage!r} is missing secret names: {', '.join(missing)}")

    repository_url = os.getenv("GITHUB_REPOSITORY_URL", "") or loader.get("git.repository_url", "")
    if not repository_url:
        raise ConfigurationError("GITHUB_REPOSITORY_URL is required")

    git = GitSettings(
        user_name=loader.get("git.user_name"),
        user_email=loader.get("git.user_email"),
        commit_message=loader.get("git.commit_message"),
        host=loader.get("git.host", "github.com"),
        host_ips=list(loader.get("git.host_ips", [])),
        host_public_key=loader.get("git.host_public_key", ""),
    )
    if not git.host_public_key:
        raise ConfigurationError("git.host_public_key is required for known_hosts pinning")

    mappings = dict(loader.get("export.keyword_replace_mappings", {}))
    mappings.update(_parse_mappings(os.getenv("AUTH0_KEYWORD_REPLACE_MAPPINGS")))

    secret_provider = (os.getenv("SECRETS_PROVIDER") or loader.get("secrets.provider", "ssm")).lower()
    if secret_provider not in ("ssm", "json"):
        raise ConfigurationError(f"Unknown secrets provider: {secret_provider}")

    return SyncSettings(
        config_loader=loader,
        stage=stage,
        repository_url=repository_url,
        operating_path=Path(os.getenv("OPERATING_PATH") or loader.get("paths.operating_path")),
        repo_dir=loader.get("paths.repo_dir", "repo"),
        known_hosts_file=loader.get("paths.known_hosts_file", "known_hosts"),
        private_key_file=loader.get("paths.private_key_file", "id_rsa"),
        git=git,
        private_key_secret=stage_secrets["github_private_key"],
        tenants_secret=stage_secrets["tenants"],
        secret_provider=secret_provider,
        secrets_file=os.getenv("SECRETS_FILE") or loader.get("secrets.file"),
        keyword_replacements=mappings,
        fail_fast=_parse_bool(os.getenv("FAIL_FAST"), loader.get("sync.fail_fast", False)),
    )
