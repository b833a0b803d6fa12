"""
REST API routes for the code review service.

Endpoints:
    POST   /api/repo/clone                      — Clone (or reuse) a repository
    POST   /api/repo/sync/{repo_id}             — Fetch + hard reset a working tree
    GET    /api/repo/cloned                     — List repositories still on disk
    GET    /api/repo/files/{repo_id}            — List files in a working tree
    GET    /api/repo/file/{repo_id}/{path}      — Read one file
    GET    /api/repo/branches/{repo_id}         — Remote branch names
    GET    /api/repo/changed-files/{repo_id}    — Files changed between two branches
    DELETE /api/repo/{repo_id}                  — Delete a working tree
    GET    /api/review/models                   — Models available for review
    POST   /api/review/analyze                  — Batch-review files
    GET    /api/health                          — Health check
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from analyzer.catalog import list_models
from git_integration.errors import (
    GitOperationError,
    InputRejectedError,
    NotFoundError,
    RepositoryError,
)
from review_api.api.auth import require_api_key
from review_api.api.rate_limit import rate_limit
from review_api.models.analysis import AnalysisRequest, AnalysisResponse, ModelInfo
from review_api.models.repository import (
    BranchListResponse,
    ClonedListResponse,
    CloneRequest,
    CloneResult,
    FileContentResponse,
    FileListResponse,
    SyncRequest,
    SyncResult,
)

router = APIRouter()
_protected = APIRouter(dependencies=[Depends(require_api_key)])

# These will be injected by the app factory
_repositories = None
_batch = None


def set_dependencies(repositories, batch):
    global _repositories, _batch
    _repositories = repositories
    _batch = batch


def _require_repositories():
    if _repositories is None:
        raise HTTPException(status_code=503, detail="Repository manager not initialized")
    return _repositories


def _http_error(e: RepositoryError) -> HTTPException:
    """Map a repository-layer failure onto an HTTP status."""
    if isinstance(e, InputRejectedError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, GitOperationError):
        return HTTPException(
            status_code=502,
            detail={"error": str(e), "kind": e.kind.value, "branch": e.failure.branch},
        )
    return HTTPException(status_code=500, detail=str(e))


# ── Repository endpoints ──────────────────────────────────────────


@_protected.post(
    "/api/repo/clone",
    response_model=CloneResult,
    dependencies=[Depends(rate_limit)],
)
async def clone_repository(body: CloneRequest):
    """Clone a repository, or return the existing working tree for the same url and branch.

    ``cached`` is true when no git command was run.
    """
    repositories = _require_repositories()
    try:
        return await repositories.clone(body.repo_url, body.branch, body.access_token)
    except RepositoryError as e:
        raise _http_error(e) from e


@_protected.post("/api/repo/sync/{repo_id}", response_model=SyncResult)
async def sync_repository(repo_id: str, body: SyncRequest):
    """Bring a working tree to the remote branch tip. Local changes are discarded."""
    repositories = _require_repositories()
    try:
        return await repositories.sync(repo_id, body.repo_url, body.branch, body.access_token)
    except RepositoryError as e:
        raise _http_error(e) from e


@_protected.get("/api/repo/cloned", response_model=ClonedListResponse)
async def list_cloned_repositories():
    repositories = _require_repositories()
    return ClonedListResponse(repos=repositories.list_cloned())


@_protected.get("/api/repo/files/{repo_id}", response_model=FileListResponse)
async def list_repository_files(repo_id: str):
    repositories = _require_repositories()
    try:
        files = await repositories.list_files(repo_id)
    except RepositoryError as e:
        raise _http_error(e) from e
    return FileListResponse(files=files)


@_protected.get("/api/repo/file/{repo_id}/{file_path:path}", response_model=FileContentResponse)
async def read_repository_file(repo_id: str, file_path: str):
    repositories = _require_repositories()
    try:
        content = await repositories.read_file(repo_id, file_path)
    except RepositoryError as e:
        raise _http_error(e) from e
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Could not read file: {e.strerror or e}") from e
    return FileContentResponse(path=file_path, content=content)


@_protected.get("/api/repo/branches/{repo_id}", response_model=BranchListResponse)
async def list_repository_branches(repo_id: str):
    repositories = _require_repositories()
    try:
        branches = await repositories.list_branches(repo_id)
    except RepositoryError as e:
        raise _http_error(e) from e
    return BranchListResponse(branches=branches)


@_protected.get("/api/repo/changed-files/{repo_id}", response_model=FileListResponse)
async def list_changed_files(
    repo_id: str,
    target_branch: str = Query(..., description="Branch to compare against"),
    current_branch: Optional[str] = Query(None, description="Defaults to the cloned branch"),
):
    """Files added or modified on ``current_branch`` relative to ``target_branch``."""
    repositories = _require_repositories()
    try:
        files = await repositories.changed_files(repo_id, target_branch, current_branch)
    except RepositoryError as e:
        raise _http_error(e) from e
    return FileListResponse(files=files)


@_protected.delete("/api/repo/{repo_id}")
async def delete_repository(repo_id: str):
    """Delete a working tree and its mapping. Deleting a missing repository succeeds."""
    repositories = _require_repositories()
    try:
        await repositories.delete(repo_id)
    except RepositoryError as e:
        raise _http_error(e) from e
    return {"status": "deleted", "repo_id": repo_id}


# ── Review endpoints ──────────────────────────────────────────────


@_protected.get("/api/review/models", response_model=list[ModelInfo])
async def get_models():
    return list_models()


@_protected.post(
    "/api/review/analyze",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit)],
)
async def analyze_files(body: AnalysisRequest):
    """Review a batch of files. One result per file, in request order."""
    if _batch is None:
        raise HTTPException(status_code=503, detail="Analyzer not initialized")
    try:
        return await _batch.analyze(body.repo_id, body.model, body.files)
    except RepositoryError as e:
        raise _http_error(e) from e


# ── Health check ──────────────────────────────────────────────────


@router.get("/api/health")
async def health_check():
    """System health check."""
    return {
        "status": "healthy",
        "repositories_connected": _repositories is not None,
        "analyzer": _batch.analyzer.name if _batch is not None else None,
    }


router.include_router(_protected)
