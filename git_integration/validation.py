"""
Input validation for everything a caller can put into a filesystem path or a
git invocation: repository ids, file paths inside a working tree, and branch
names.

Every function here returns a boolean or ``None`` and never raises. Callers
treat "invalid" as an ordinary branch and reject the request before touching
disk or spawning git.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

# Version-4 UUID: version nibble fixed to 4, variant nibble one of 8/9/a/b.
_REPO_ID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    re.IGNORECASE,
)

_BRANCH_SAFE_RE = re.compile(r"[A-Za-z0-9._/-]+")

# Branch names end up as git arguments; none of these may ever appear,
# even though the allowlist above already excludes most of them.
_SHELL_METACHARACTERS = frozenset(";|&$`(){}[]<>*?~\"' \t\n\r\\")

_SEGMENT_SPLIT_RE = re.compile(r"[\\/]+")


def is_valid_repo_id(repo_id: object) -> bool:
    """Return True iff *repo_id* is a lowercase/uppercase UUIDv4 string."""
    if not repo_id or not isinstance(repo_id, str):
        return False
    return _REPO_ID_RE.fullmatch(repo_id) is not None


def _is_within(path: str, base: str) -> bool:
    return path == base or path.startswith(base.rstrip(os.sep) + os.sep)


def resolve_safe_path(relative_path: object, base_dir: str | Path) -> Optional[Path]:
    """Resolve *relative_path* under *base_dir*, or return None if it escapes.

    Two independent checks run: the normalized text must not contain a
    ``..`` segment, and the fully resolved path (symlinks included) must be
    *base_dir* itself or one of its descendants.
    """
    if not relative_path or not isinstance(relative_path, str):
        return None
    if "\x00" in relative_path:
        return None
    if os.path.isabs(relative_path) or relative_path.startswith(("/", "\\")):
        return None

    normalized = os.path.normpath(relative_path)
    if ".." in _SEGMENT_SPLIT_RE.split(normalized):
        return None

    base = os.path.realpath(os.fspath(base_dir))
    resolved = os.path.realpath(os.path.join(base, normalized))
    if not _is_within(resolved, base):
        return None
    return Path(resolved)


def resolve_safe_repo_path(repo_id: object, repos_root: str | Path) -> Optional[Path]:
    """Return the working-tree path for *repo_id* under *repos_root*, or None."""
    if not is_valid_repo_id(repo_id):
        return None
    repo_id = str(repo_id)
    if os.sep in repo_id or "/" in repo_id or "\\" in repo_id:
        return None

    root = os.path.abspath(os.fspath(repos_root))
    candidate = os.path.abspath(os.path.join(root, repo_id))
    if candidate == root or not _is_within(candidate, root):
        return None
    return Path(candidate)


def is_valid_branch_name(branch: object) -> bool:
    """Check a caller-supplied branch name before it reaches git.

    Accepts ``main`` or ``feature/x-1.2``. Rejects blanks, leading/trailing
    dots, ``..`` anywhere, a leading dash, and any character outside
    ``[A-Za-z0-9._/-]``.
    """
    if not branch or not isinstance(branch, str):
        return False
    if not branch.strip():
        return False
    if branch.startswith(".") or branch.endswith("."):
        return False
    if branch.startswith("-"):
        return False
    if ".." in branch:
        return False
    if any(ch in _SHELL_METACHARACTERS for ch in branch):
        return False
    if any(ch.isspace() for ch in branch):
        return False
    return _BRANCH_SAFE_RE.fullmatch(branch) is not None


_REPO_URL_RE = re.compile(r"(https?://|git@|git://).+")


def is_valid_repo_url(url: object) -> bool:
    """Accept ``http(s)://``, ``git@`` and ``git://`` repository URLs."""
    if not url or not isinstance(url, str):
        return False
    candidate = url.strip()
    if any(ch.isspace() for ch in candidate):
        return False
    return _REPO_URL_RE.fullmatch(candidate) is not None
