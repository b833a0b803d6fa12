"""
Error taxonomy for repository operations and the git failure classifier.

Git reports failures as free text on stderr. ``classify_git_failure`` turns
that text into one ``GitFailure`` using an ordered, first-match-wins rule
list:

    branch-not-found → repository-not-found → authentication → network
    → permission-denied → unknown

The order matters. "permission denied" shows up both for bad credentials and
for local filesystem problems, so authentication is tried before the
permission category.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union


class GitFailureKind(str, Enum):
    BRANCH_NOT_FOUND = "branch_not_found"
    REPOSITORY_NOT_FOUND = "repository_not_found"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_ERROR = "network_error"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class GitFailure:
    """A classified git failure with a message that is safe to show users."""

    kind: GitFailureKind
    message: str
    branch: Optional[str] = None


# ── Exceptions ───────────────────────────────────────────────────────────────


class RepositoryError(Exception):
    """Base class for failures surfaced by the repository layer."""


class InputRejectedError(RepositoryError):
    """A repo id, url, path or branch failed validation. Nothing was touched."""


class NotFoundError(RepositoryError):
    """A repository or file does not exist."""


class RepositoryNotFoundError(NotFoundError):
    def __init__(self, message: str = "Repository not found"):
        super().__init__(message)


class FileNotFoundInRepoError(NotFoundError):
    def __init__(self, message: str = "File not found"):
        super().__init__(message)


class GitOperationError(RepositoryError):
    """A git invocation failed; ``failure`` holds the classified cause."""

    def __init__(self, failure: GitFailure):
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> GitFailureKind:
        return self.failure.kind


class GitCommandError(Exception):
    """Raw failure of a git subprocess, before classification."""

    def __init__(
        self,
        args: Sequence[str],
        exit_code: Optional[int],
        stdout: Union[str, bytes] = "",
        stderr: Union[str, bytes] = "",
    ):
        self.command = list(args)
        self.exit_code = exit_code
        self.stdout = _to_text(stdout)
        self.stderr = _to_text(stderr)
        summary = self.stderr.strip() or self.stdout.strip() or f"exit code {exit_code}"
        super().__init__(f"git {self.command[0] if self.command else ''} failed: {summary}")


# ── Rules ────────────────────────────────────────────────────────────────────

_BRANCH_NOT_FOUND_PATTERNS = [
    re.compile(r"fatal:\s+couldn't\s+find\s+remote\s+ref\s+['\"]?([^'\"\s]+)['\"]?", re.I),
    re.compile(r"fatal:\s+remote\s+branch\s+['\"]?([^'\"\s]+)['\"]?\s+not\s+found", re.I),
    re.compile(r"error:\s+pathspec\s+['\"]?([^'\"]+)['\"]?\s+did\s+not\s+match\s+any\s+file", re.I),
    re.compile(r"could\s+not\s+find\s+remote\s+branch\s+['\"]?([^'\"\s]+)['\"]?", re.I),
]

_RULES: list[tuple[GitFailureKind, list[re.Pattern[str]], str]] = [
    (
        GitFailureKind.REPOSITORY_NOT_FOUND,
        [
            re.compile(r"repository\s+not\s+found", re.I),
            re.compile(r"could\s+not\s+read\s+from\s+remote\s+repository", re.I),
        ],
        "Repository not found. Please verify the repository URL is correct.",
    ),
    (
        GitFailureKind.AUTHENTICATION_FAILED,
        [
            re.compile(r"authentication\s+failed", re.I),
            re.compile(r"permission\s+denied", re.I),
            re.compile(r"unauthorized", re.I),
            re.compile(r"invalid\s+credentials", re.I),
        ],
        "Authentication failed. Please check your credentials or access token.",
    ),
    (
        GitFailureKind.NETWORK_ERROR,
        [
            re.compile(r"connection\s+refused", re.I),
            re.compile(r"network\s+(is\s+)?unreachable", re.I),
            re.compile(r"time(d)?\s*out", re.I),
            re.compile(r"could\s+not\s+resolve\s+host", re.I),
            re.compile(r"failed\s+to\s+connect", re.I),
        ],
        "Network error occurred. Please check your internet connection and try again.",
    ),
    (
        GitFailureKind.PERMISSION_DENIED,
        [
            re.compile(r"permission\s+denied", re.I),
            re.compile(r"access\s+denied", re.I),
            re.compile(r"forbidden", re.I),
        ],
        "Permission denied. You may not have access to this repository.",
    ),
]


def _to_text(output: Union[str, bytes, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)


def _match_branch(text: str, branch: Optional[str]) -> Optional[GitFailure]:
    for pattern in _BRANCH_NOT_FOUND_PATTERNS:
        match = pattern.search(text)
        if match:
            detected = match.group(1) or branch or "unknown"
            return GitFailure(
                kind=GitFailureKind.BRANCH_NOT_FOUND,
                message=(
                    f'Branch "{detected}" not found in repository. '
                    "Please check the branch name and try again."
                ),
                branch=detected,
            )
    return None


def extract_error_message(text: str, fallback: Optional[str] = None) -> str:
    """Pick the most useful line out of git output for an unclassified failure."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    for prefix in ("fatal:", "error:"):
        for line in lines:
            if prefix in line.lower():
                return re.sub(rf"^{prefix}\s*", "", line, flags=re.I).strip()

    if lines:
        return lines[0]
    return fallback or "Unknown error occurred"


def classify_git_failure(
    *,
    exit_code: Optional[int] = None,
    stderr: Union[str, bytes, None] = "",
    stdout: Union[str, bytes, None] = "",
    branch: Optional[str] = None,
    error_message: Optional[str] = None,
) -> GitFailure:
    """Classify a failed git invocation. Pure; never raises."""
    text = " \n".join(
        part for part in (_to_text(stderr).strip(), _to_text(stdout).strip(), error_message or "") if part
    )

    failure = _match_branch(text, branch)
    if failure:
        return failure

    for kind, patterns, message in _RULES:
        if any(p.search(text) for p in patterns):
            return GitFailure(kind=kind, message=message)

    return GitFailure(
        kind=GitFailureKind.UNKNOWN,
        message=extract_error_message(
            text,
            fallback=error_message or (f"git exited with code {exit_code}" if exit_code is not None else None),
        ),
        branch=branch,
    )


def classify_command_error(exc: GitCommandError, branch: Optional[str] = None) -> GitFailure:
    """Convenience wrapper for a raw ``GitCommandError``."""
    return classify_git_failure(
        exit_code=exc.exit_code,
        stderr=exc.stderr,
        stdout=exc.stdout,
        branch=branch,
    )
