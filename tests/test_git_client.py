"""Tests for SubprocessGitClient: argument vectors, output parsing, failures."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from git_integration.client import SubprocessGitClient
from git_integration.errors import GitCommandError


def _client_with_output(output: str = "") -> tuple[SubprocessGitClient, AsyncMock]:
    client = SubprocessGitClient()
    run = AsyncMock(return_value=output)
    client._run = run
    return client, run


class TestArgumentVectors:
    @pytest.mark.asyncio
    async def test_clone_puts_separator_before_url(self):
        client, run = _client_with_output()
        await client.clone("https://github.com/a/b", Path("/tmp/x"), ["--depth", "1"])
        run.assert_awaited_once_with(["clone", "--depth", "1", "--", "https://github.com/a/b", "/tmp/x"])

    @pytest.mark.asyncio
    async def test_fetch_and_reset(self):
        client, run = _client_with_output()
        await client.fetch(Path("/r"), "origin", "+refs/heads/main:refs/remotes/origin/main")
        await client.reset(Path("/r"), "hard", "origin/main")
        assert run.await_args_list[0].args[0] == [
            "fetch",
            "--",
            "origin",
            "+refs/heads/main:refs/remotes/origin/main",
        ]
        assert run.await_args_list[1].args[0] == ["reset", "--hard", "origin/main", "--"]


class TestParsing:
    @pytest.mark.asyncio
    async def test_remote_branches(self):
        client, _ = _client_with_output(
            "abc123\trefs/heads/main\n"
            "def456\trefs/heads/feature/x\n"
            "garbage line\n"
            "0a0a0a\trefs/tags/v1\n"
        )
        assert await client.remote_branches(Path("/r")) == ["feature/x", "main"]

    @pytest.mark.asyncio
    async def test_diff_numstat(self):
        client, _ = _client_with_output("3\t1\tsrc/app.py\n-\t-\tlogo.png\n0\t4\told.py\n\n")
        entries = await client.diff_numstat(Path("/r"), "origin/main", "origin/dev")

        assert [(e.path, e.insertions, e.deletions, e.binary) for e in entries] == [
            ("src/app.py", 3, 1, False),
            ("logo.png", None, None, True),
            ("old.py", 0, 4, False),
        ]


class TestRun:
    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_command_error(self):
        proc = MagicMock()
        proc.communicate = AsyncMock(return_value=(b"", b"fatal: repository not found"))
        proc.returncode = 128

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as spawn:
            with pytest.raises(GitCommandError) as exc_info:
                await SubprocessGitClient().fetch(Path("/r"), "origin", "main")

        assert exc_info.value.exit_code == 128
        assert "repository not found" in exc_info.value.stderr
        env = spawn.await_args.kwargs["env"]
        assert env["GIT_TERMINAL_PROMPT"] == "0"

    @pytest.mark.asyncio
    async def test_success_returns_stdout(self):
        proc = MagicMock()
        proc.communicate = AsyncMock(return_value=(b"abc\trefs/heads/main\n", b""))
        proc.returncode = 0

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            assert await SubprocessGitClient().remote_branches(Path("/r")) == ["main"]

    @pytest.mark.asyncio
    async def test_timeout_kills_and_reports_network_style_error(self):
        proc = MagicMock()

        async def hang():
            await asyncio.sleep(10)

        proc.communicate = hang
        proc.kill = MagicMock()
        proc.wait = AsyncMock(return_value=-9)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(GitCommandError) as exc_info:
                await SubprocessGitClient(timeout=0.01).clone("https://x/y", Path("/tmp/y"))

        proc.kill.assert_called_once()
        assert exc_info.value.exit_code is None
        assert "timed out" in exc_info.value.stderr
