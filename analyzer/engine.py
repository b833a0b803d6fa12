"""
FileAnalyzer ABC — pluggable LLM backend that reviews one file at a time.

The batch orchestrator owns fan-out, ordering and failure isolation; an
analyzer only turns (content, path, model) into a ``FileAnalysis``.

This module defines the contract and provides a factory function.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from review_api.models.analysis import FileAnalysis


class AnalyzerConfigError(RuntimeError):
    """The analyzer cannot run at all (e.g. no API key configured)."""


class FileAnalyzer(ABC):
    """
    Abstract base for single-file review backends.

    Lifecycle:
        create → analyze() × N → close()

    Implementations should return a degraded ``FileAnalysis`` (``error`` set)
    for failures of the external call itself, and raise only when they are
    not usable at all.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs."""
        ...

    @abstractmethod
    async def analyze(self, content: str, file_path: str, model: str) -> FileAnalysis:
        """Review *content* (the text of *file_path*) with *model*."""
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None


def create_analyzer(backend: str) -> FileAnalyzer:
    """Factory function to create the configured analyzer backend."""
    if backend == "openrouter":
        from analyzer.openrouter.openrouter_analyzer import OpenRouterAnalyzer

        return OpenRouterAnalyzer()
    else:
        raise ValueError(f"Unknown analyzer backend: {backend!r}. Use 'openrouter'.")
