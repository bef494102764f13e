"""Git transport and command runner.

Every git call carries its SSH configuration explicitly through a
``GitTransport``; the process environment is never modified.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import GitCommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class GitTransport:
    private_key_path: Path
    known_hosts_path: Path

    @property
    def ssh_command(self) -> str:
        # -F /dev/null: ignore ambient ssh config, only the staged key and known_hosts count
        return " ".join([
            "ssh",
            "-F", "/dev/null",
            "-o", "IdentitiesOnly=yes",
            "-o", "StrictHostKeyChecking=yes",
            "-o", f"UserKnownHostsFile={shlex.quote(str(self.known_hosts_path))}",
            "-i", shlex.quote(str(self.private_key_path)),
        ])

    def environment(self) -> Dict[str, str]:
        env = dict(os.environ)
        env["GIT_SSH_COMMAND"] = self.ssh_command
        env["GIT_TERMINAL_PROMPT"] = "0"
        return env


class GitRunner:
    """Runs git as a blocking external command, awaited on the event loop."""

    def __init__(self, transport: GitTransport, git_binary: str = "git"):
        self.transport = transport
        self.git_binary = git_binary

    async def run(self, *args: str, cwd: Optional[PathLike] = None) -> str:
        logger.debug(f"git {' '.join(args)}")
        process = await asyncio.create_subprocess_exec(
            self.git_binary,
            *args,
            cwd=str(cwd) if cwd is not None else None,
            env=self.transport.environment(),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise GitCommandError(args, process.returncode, stderr.decode("utf-8", errors="replace"))
        return stdout.decode("utf-8", errors="replace").rstrip()
