"""Analysis models — per-file review results and the batch summary."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from review_api.models.repository import FileDescriptor


def _coerce_line(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return int(v) if v.isdigit() else None
    if isinstance(v, float):
        return int(v)
    return v


class Issue(BaseModel):
    """One finding reported by the model. Fields are loose: models are sloppy."""

    line: Optional[int] = None
    type: Optional[str] = None
    severity: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None
    suggestion: Optional[str] = None

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line(cls, v: Any) -> Any:
        return _coerce_line(v)


class Vulnerability(BaseModel):
    line: Optional[int] = None
    type: str
    severity: str
    code: Optional[str] = None

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line(cls, v: Any) -> Any:
        return _coerce_line(v)


class FileAnalysis(BaseModel):
    """Outcome of reviewing one file.

    A result with ``error`` set is degraded: the other fields are best-effort
    (fallback score, locally scanned vulnerabilities) or absent.
    """

    file: str
    score: Optional[int] = None
    issues: Optional[list[Issue]] = None
    strengths: Optional[list[str]] = None
    vulnerabilities: Optional[list[Vulnerability]] = None
    summary: Optional[str] = None
    error: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> Any:
        """Accept numeric strings and floats; clamp into 0–100."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str):
            try:
                v = float(v.strip())
            except ValueError:
                return None
        if isinstance(v, (int, float)):
            return max(0, min(100, int(round(v))))
        return v

    @property
    def degraded(self) -> bool:
        return self.error is not None


class AnalysisRequest(BaseModel):
    """Request body for a batch review."""

    repo_id: str = ""
    model: str = ""
    files: list[FileDescriptor] = Field(default_factory=list)


class AnalysisSummary(BaseModel):
    overall_score: int
    total_files: int
    vulnerability_count: int
    reviewed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnalysisResponse(BaseModel):
    results: list[FileAnalysis]
    summary: AnalysisSummary


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str
