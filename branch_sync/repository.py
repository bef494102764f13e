"""Repository session bootstrap: credentials, known_hosts pinning, clone and identity."""
from __future__ import annotations

import logging
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config import SyncSettings
from .git import GitRunner, GitTransport

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[GitTransport], GitRunner]

GIT_DIR = ".git"


@dataclass(frozen=True)
class SshIdentity:
    private_key_path: Path
    known_hosts_path: Path


@dataclass
class RepositorySession:
    """The one working copy shared, sequentially, by every tenant cycle of a run."""

    path: Path
    remote_url: str
    ssh_identity: SshIdentity
    git: GitRunner

    async def run_git(self, *args: str) -> str:
        return await self.git.run(*args, cwd=self.path)

    def clear_working_tree(self) -> None:
        """Delete everything in the clone except the git metadata directory."""
        for entry in self.path.iterdir():
            if entry.name == GIT_DIR:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()


def reset_operating_directory(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def write_known_hosts(path: Path, entry: str) -> None:
    path.write_text(entry, encoding="utf-8")


def stage_private_key(path: Path, key: str) -> None:
    """Write the key owner-read-only before anything can use it."""
    if not key.endswith("\n"):
        key += "\n"
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(key)
    os.chmod(path, stat.S_IRUSR)


async def bootstrap_repository(
    settings: SyncSettings,
    secret_provider,
    runner_factory: RunnerFactory = GitRunner,
) -> RepositorySession:
    """Produce an authenticated clone. Any failure here is fatal for the run."""
    logger.info("Attempting to clone a repository")

    logger.info("Clearing existing operating directory")
    reset_operating_directory(settings.operating_path)

    logger.info("Creating known_hosts")
    write_known_hosts(settings.known_hosts_path, settings.git.known_hosts_entry)

    logger.info("Creating private ssh key file")
    private_key = secret_provider.get_secret(settings.private_key_secret)
    stage_private_key(settings.private_key_path, private_key.value)

    transport = GitTransport(settings.private_key_path, settings.known_hosts_path)
    runner = runner_factory(transport)

    logger.info("Executing clone")
    await runner.run("clone", settings.repository_url, str(settings.repo_path))

    session = RepositorySession(
        path=settings.repo_path,
        remote_url=settings.repository_url,
        ssh_identity=SshIdentity(settings.private_key_path, settings.known_hosts_path),
        git=runner,
    )

    logger.info("Setting user name and email")
    await session.run_git("config", "user.name", settings.git.user_name)
    await session.run_git("config", "user.email", settings.git.user_email)

    logger.info("Successfully finished cloning the repository")
    return session
