"""
Batch review — fan a list of files out to the analyzer in fixed windows.

    files ──▶ [w0: f0 f1 f2] ──settle──▶ [w1: f3 f4 f5] ──settle──▶ ... ──▶ summary

Within a window every file is reviewed concurrently; the next window starts
only after the whole current one has settled. A batch of N files always
yields N results in input order: a failing file becomes ``{file, error}``
and never aborts its siblings.
"""

from __future__ import annotations

import asyncio
import math
from typing import Sequence, Union

import structlog

from analyzer.engine import FileAnalyzer
from git_integration.errors import InputRejectedError, RepositoryError
from git_integration.git_manager import RepositoryManager
from review_api.models.analysis import AnalysisResponse, AnalysisSummary, FileAnalysis
from review_api.models.repository import FileDescriptor

logger = structlog.get_logger()

DEFAULT_WINDOW_SIZE = 3
NO_SCORE_DEFAULT = 100


class BatchAnalysisOrchestrator:
    """Reviews many files of one working tree with bounded concurrency."""

    def __init__(
        self,
        repositories: RepositoryManager,
        analyzer: FileAnalyzer,
        window_size: int = DEFAULT_WINDOW_SIZE,
    ):
        self.repositories = repositories
        self.analyzer = analyzer
        self.window_size = max(1, window_size)

    async def analyze(
        self,
        repo_id: str,
        model: str,
        files: Sequence[Union[FileDescriptor, str]],
    ) -> AnalysisResponse:
        """Review *files* of *repo_id* with *model*.

        Raises:
            InputRejectedError: repo id, model or files missing, or a malformed repo id.
            RepositoryNotFoundError: the working tree does not exist.
        """
        if not repo_id or not model or not files:
            raise InputRejectedError("Missing required fields")
        self.repositories.resolve_repo_path(repo_id)

        paths = [f if isinstance(f, str) else f.path for f in files]
        await logger.ainfo(
            "Starting batch review",
            repo_id=repo_id,
            model=model,
            file_count=len(paths),
            window_size=self.window_size,
        )

        results: list[FileAnalysis] = []
        for start in range(0, len(paths), self.window_size):
            window = paths[start : start + self.window_size]
            # gather keeps input order regardless of completion order
            results.extend(
                await asyncio.gather(*(self._analyze_file(repo_id, path, model) for path in window))
            )

        summary = AnalysisSummary(
            overall_score=self.calculate_overall_score(results),
            total_files=len(results),
            vulnerability_count=self.count_vulnerabilities(results),
        )
        await logger.ainfo(
            "Batch review complete",
            repo_id=repo_id,
            overall_score=summary.overall_score,
            failed=sum(1 for r in results if r.degraded),
        )
        return AnalysisResponse(results=results, summary=summary)

    async def _analyze_file(self, repo_id: str, path: str, model: str) -> FileAnalysis:
        try:
            content = await self.repositories.read_file(repo_id, path)
        except RepositoryError as e:
            # invalid path or missing file: the analyzer is never called
            return FileAnalysis(file=path, error=str(e))
        except OSError as e:
            await logger.awarning("File read failed", repo_id=repo_id, file=path, error=str(e))
            return FileAnalysis(file=path, error=f"Could not read file: {e.strerror or e}")

        try:
            analysis = await self.analyzer.analyze(content, path, model)
        except Exception as e:
            await logger.awarning("File review failed", repo_id=repo_id, file=path, error=str(e))
            return FileAnalysis(file=path, error=str(e) or type(e).__name__)
        return analysis.model_copy(update={"file": path})

    @staticmethod
    def calculate_overall_score(results: Sequence[FileAnalysis]) -> int:
        """Rounded mean of the defined scores; 100 when no result has one."""
        scores = [r.score for r in results if r.score is not None]
        if not scores:
            return NO_SCORE_DEFAULT
        # half-up, not banker's rounding
        return math.floor(sum(scores) / len(scores) + 0.5)

    @staticmethod
    def count_vulnerabilities(results: Sequence[FileAnalysis]) -> int:
        return sum(len(r.vulnerabilities or []) for r in results)

