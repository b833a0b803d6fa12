"""Persistent (url, branch) → repo id mapping used to deduplicate clones."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()

DEFAULT_BRANCH = "main"


def normalize_url(url: str) -> str:
    """Lower-case, trim, and drop a trailing ``.git`` so equivalent URLs collapse."""
    normalized = url.lower().strip()
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    return normalized


def create_key(url: str, branch: str = DEFAULT_BRANCH) -> str:
    return f"{normalize_url(url)}:{branch}"


def parse_key(key: str) -> Optional[tuple[str, str]]:
    """Split a mapping key back into (url, branch).

    Splits on the last colon: URLs carry their own (``https://``,
    ``git@host:org/repo``), branch names never do.
    """
    url, sep, branch = key.rpartition(":")
    if not sep:
        return None
    return url, branch


class RepositoryIdentityMap:
    """File-backed dictionary of mapping key → repo id.

    The whole JSON object is read on every lookup and rewritten on every
    mutation. The map is small and written once per clone/delete, and a
    missing or corrupt file reads as an empty map.

    There is no file locking: one process is assumed to own the file.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load repository mappings", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Repository mappings file is not an object", path=str(self._path))
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self, mappings: dict[str, str]) -> None:
        """Write all mappings to disk, replacing the file atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".repo-mappings-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(mappings, f, indent=2)
            os.replace(tmp_path, self._path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, url: str, branch: str = DEFAULT_BRANCH) -> Optional[str]:
        return self._load().get(create_key(url, branch))

    def set(self, url: str, branch: str, repo_id: str) -> None:
        mappings = self._load()
        mappings[create_key(url, branch)] = repo_id
        self._flush(mappings)
        logger.debug("Repository mapping stored", branch=branch, repo_id=repo_id)

    def remove(self, url: str, branch: str = DEFAULT_BRANCH) -> None:
        mappings = self._load()
        if mappings.pop(create_key(url, branch), None) is not None:
            self._flush(mappings)

    def all(self) -> dict[str, str]:
        return self._load()

    def find_key(self, repo_id: str) -> Optional[str]:
        """Reverse lookup: the key that maps to *repo_id*, if any."""
        for key, mapped in self._load().items():
            if mapped == repo_id:
                return key
        return None

    def remove_repo_id(self, repo_id: str) -> list[str]:
        """Drop every entry pointing at *repo_id*; returns the removed keys."""
        mappings = self._load()
        removed = [key for key, mapped in mappings.items() if mapped == repo_id]
        for key in removed:
            if parse_key(key) is None:
                logger.warning("Invalid mapping key format", key=key)
            del mappings[key]
        if removed:
            self._flush(mappings)
        return removed
