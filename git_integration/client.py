"""Git client capability — the only place that spawns git."""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import structlog

from .errors import GitCommandError

logger = structlog.get_logger()

_GIT_ENV = {
    # Never block on a credential prompt; fail instead.
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_ASKPASS": "echo",
    "LC_ALL": "C",
}


@dataclass
class DiffEntry:
    """One line of ``git diff --numstat``."""

    path: str
    insertions: Optional[int]
    deletions: Optional[int]

    @property
    def binary(self) -> bool:
        return self.insertions is None or self.deletions is None


class GitClient(ABC):
    """Abstract git operations used by the repository lifecycle.

    Implementations raise ``GitCommandError`` on failure and never
    interpret the output; classification happens in the caller.
    """

    @abstractmethod
    async def clone(self, url: str, dest: Path, options: Sequence[str] = ()) -> None:
        """Clone *url* into *dest* with extra ``git clone`` options."""
        ...

    @abstractmethod
    async def fetch(self, repo_dir: Path, remote: str, refspec: str) -> None:
        """Fetch *refspec* from *remote* (a remote name or URL)."""
        ...

    @abstractmethod
    async def reset(self, repo_dir: Path, mode: str, target: str) -> None:
        """Run ``git reset --<mode> <target>``."""
        ...

    @abstractmethod
    async def set_remote_url(self, repo_dir: Path, name: str, url: str) -> None:
        """Point remote *name* at *url*."""
        ...

    @abstractmethod
    async def remote_branches(self, repo_dir: Path, remote: str = "origin") -> list[str]:
        """Branch names advertised by *remote*."""
        ...

    @abstractmethod
    async def diff_numstat(self, repo_dir: Path, base: str, head: str) -> list[DiffEntry]:
        """Per-file insertions/deletions between two revisions."""
        ...


class SubprocessGitClient(GitClient):
    """Runs the ``git`` binary with an argument vector (never through a shell)."""

    def __init__(self, git_binary: str = "git", timeout: int = 300):
        self.git_binary = git_binary
        self.timeout = timeout

    async def _run(self, args: list[str], cwd: Optional[Path] = None) -> str:
        env = {**os.environ, **_GIT_ENV}
        await logger.adebug("Running git", subcommand=args[0], cwd=str(cwd) if cwd else None)
        proc = await asyncio.create_subprocess_exec(
            self.git_binary,
            *args,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise GitCommandError(
                args, None, "", f"fatal: git {args[0]} timed out after {self.timeout}s"
            )

        if proc.returncode != 0:
            raise GitCommandError(args, proc.returncode, stdout, stderr)
        return stdout.decode("utf-8", errors="replace")

    async def clone(self, url: str, dest: Path, options: Sequence[str] = ()) -> None:
        # "--" keeps the url/dest from ever being parsed as options
        await self._run(["clone", *options, "--", url, str(dest)])

    async def fetch(self, repo_dir: Path, remote: str, refspec: str) -> None:
        await self._run(["fetch", "--", remote, refspec], cwd=repo_dir)

    async def reset(self, repo_dir: Path, mode: str, target: str) -> None:
        await self._run(["reset", f"--{mode}", target, "--"], cwd=repo_dir)

    async def set_remote_url(self, repo_dir: Path, name: str, url: str) -> None:
        await self._run(["remote", "set-url", "--", name, url], cwd=repo_dir)

    async def remote_branches(self, repo_dir: Path, remote: str = "origin") -> list[str]:
        output = await self._run(["ls-remote", "--heads", remote], cwd=repo_dir)
        branches = []
        for line in output.splitlines():
            try:
                _, ref = line.split("\t", 1)
            except ValueError:
                continue
            if ref.startswith("refs/heads/"):
                branches.append(ref[len("refs/heads/") :])
        return sorted(branches)

    async def diff_numstat(self, repo_dir: Path, base: str, head: str) -> list[DiffEntry]:
        output = await self._run(["diff", "--numstat", base, head, "--"], cwd=repo_dir)
        entries = []
        for line in output.splitlines():
            parts = line.split("\t", 2)
            if len(parts) != 3:
                continue
            added, deleted, path = parts
            entries.append(
                DiffEntry(
                    path=path,
                    insertions=int(added) if added.isdigit() else None,
                    deletions=int(deleted) if deleted.isdigit() else None,
                )
            )
        return entries
