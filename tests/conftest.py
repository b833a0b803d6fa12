"""Shared test fixtures for the code review test suite."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Sequence

import pytest

from analyzer.engine import FileAnalyzer
from git_integration.client import DiffEntry, GitClient
from git_integration.errors import GitCommandError
from git_integration.git_manager import RepositoryManager
from git_integration.identity_map import RepositoryIdentityMap
from review_api.models.analysis import FileAnalysis, Vulnerability

DEFAULT_FILES = {
    "README.md": "# widgets\n",
    "src/app.py": "print('hello')\n",
    "src/util/helpers.py": "def add(a, b):\n    return a + b\n",
}


class FakeGitClient(GitClient):
    """A git client that writes a fake working tree and records every call."""

    def __init__(self, files: Optional[dict[str, str]] = None):
        self.files = dict(files or DEFAULT_FILES)
        self.calls: list[tuple] = []
        self.fail_with: Optional[GitCommandError] = None
        self.branches = ["develop", "main"]
        self.diff: list[DiffEntry] = []
        self.synced_files: dict[str, str] = {}

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def clone(self, url: str, dest: Path, options: Sequence[str] = ()) -> None:
        self.calls.append(("clone", url, str(dest), tuple(options)))
        if self.fail_with is not None:
            # git leaves a partial directory behind on failure
            dest.mkdir(parents=True, exist_ok=True)
            (dest / "partial").write_text("x")
            raise self.fail_with
        (dest / ".git").mkdir(parents=True)
        (dest / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        for rel, content in self.files.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

    async def fetch(self, repo_dir: Path, remote: str, refspec: str) -> None:
        self.calls.append(("fetch", str(repo_dir), remote, refspec))
        self._maybe_fail()

    async def reset(self, repo_dir: Path, mode: str, target: str) -> None:
        self.calls.append(("reset", str(repo_dir), mode, target))
        self._maybe_fail()
        for rel, content in self.synced_files.items():
            target_path = repo_dir / rel
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_text(content)

    async def set_remote_url(self, repo_dir: Path, name: str, url: str) -> None:
        self.calls.append(("set_remote_url", str(repo_dir), name, url))

    async def remote_branches(self, repo_dir: Path, remote: str = "origin") -> list[str]:
        self.calls.append(("remote_branches", str(repo_dir), remote))
        self._maybe_fail()
        return list(self.branches)

    async def diff_numstat(self, repo_dir: Path, base: str, head: str) -> list[DiffEntry]:
        self.calls.append(("diff_numstat", str(repo_dir), base, head))
        self._maybe_fail()
        return list(self.diff)


class FakeAnalyzer(FileAnalyzer):
    """Returns a scripted result per file path and tracks peak concurrency."""

    def __init__(self, scores: Optional[dict[str, Optional[int]]] = None, delay: float = 0.0):
        self.scores = scores or {}
        self.delay = delay
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "Fake"

    async def analyze(self, content: str, file_path: str, model: str) -> FileAnalysis:
        self.calls.append((file_path, model))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if file_path in self.failures:
                raise self.failures[file_path]
            return FileAnalysis(
                file="ignored-by-orchestrator",
                score=self.scores.get(file_path, 90),
                issues=[],
                strengths=["readable"],
                summary=f"{len(content)} chars reviewed",
                vulnerabilities=[Vulnerability(line=1, type="Hardcoded secret", severity="high")]
                if "secret" in content
                else [],
            )
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_git():
    """Return a fresh FakeGitClient instance."""
    return FakeGitClient()


@pytest.fixture
def repos_dir(tmp_path):
    return tmp_path / "repos"


@pytest.fixture
def identity_map(tmp_path):
    return RepositoryIdentityMap(tmp_path / "data" / "repo-mappings.json")


@pytest.fixture
def manager(repos_dir, identity_map, fake_git):
    """A RepositoryManager over a temp directory with the fake git client."""
    return RepositoryManager(
        repos_dir=repos_dir,
        identity_map=identity_map,
        git_client=fake_git,
        default_branch="main",
        clone_depth=1,
    )


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()
