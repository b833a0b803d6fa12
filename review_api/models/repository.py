"""Repository models — working trees, file listings, and clone/sync payloads."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RepoState(str, Enum):
    UNKNOWN = "unknown"
    CLONING = "cloning"
    READY = "ready"
    SYNCING = "syncing"
    DELETED = "deleted"


class FileDescriptor(BaseModel):
    """A file inside a working tree, relative to its root."""

    path: str
    size: int = Field(default=0, ge=0, description="Size in bytes")


class ClonedRepository(BaseModel):
    """An identity-map entry whose working tree is still on disk."""

    repo_id: str
    repo_url: str
    branch: str


class CloneRequest(BaseModel):
    """Request body for cloning a repository."""

    repo_url: str = Field(..., description="http(s)://, git@ or git:// repository URL")
    branch: Optional[str] = Field(default=None, description="Branch to clone (default: main)")
    access_token: Optional[str] = Field(
        default=None,
        description="Token injected into the clone URL; falls back to GITHUB_ACCESS_TOKEN",
    )


class SyncRequest(BaseModel):
    """Request body for syncing an existing working tree."""

    repo_url: str
    branch: Optional[str] = None
    access_token: Optional[str] = None


class CloneResult(BaseModel):
    repo_id: str
    files: list[FileDescriptor]
    cached: bool = False


class SyncResult(BaseModel):
    repo_id: str
    files: list[FileDescriptor]


class FileListResponse(BaseModel):
    files: list[FileDescriptor]


class FileContentResponse(BaseModel):
    path: str
    content: str


class BranchListResponse(BaseModel):
    branches: list[str]


class ClonedListResponse(BaseModel):
    repos: list[ClonedRepository]
