"""
Main FastAPI application — the entry point for the code review service.

Wires together:
- REST API routes (repository lifecycle, batch review, health)
- Repository manager (clone / sync / delete working trees)
- Analyzer backend (one LLM call per file)
- Batch orchestrator (windowed fan-out over the analyzer)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analyzer.engine import create_analyzer
from git_integration.git_manager import RepositoryManager
from review_api.api.routes import router, set_dependencies
from review_api.services.batch import BatchAnalysisOrchestrator
from review_api.services.config import get_settings
from review_api.services.log_setup import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    repositories = RepositoryManager.from_settings(settings)
    analyzer = create_analyzer(settings.analyzer_backend)
    batch = BatchAnalysisOrchestrator(
        repositories=repositories,
        analyzer=analyzer,
        window_size=settings.analysis_window_size,
    )

    # Wire up dependencies
    set_dependencies(repositories, batch)

    # ── Production safety checks ─────────────────────────────────
    for w in settings.validate_production_settings():
        await logger.awarning(w)

    # ── Required key checks ──────────────────────────────────────
    for w in settings.validate_required_keys():
        await logger.awarning("Configuration warning", message=w)

    await logger.ainfo(
        "Code review service started",
        env=settings.env,
        repos_dir=settings.repos_dir,
        analyzer=analyzer.name,
        window_size=batch.window_size,
    )

    yield

    # Shutdown
    set_dependencies(None, None)
    await analyzer.close()
    await logger.ainfo("Code review service shut down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Code Reviewer",
        description="Clone git repositories and review their files with LLMs",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS: restrict origins, override with REVIEWER_CORS_ORIGINS env var
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(router)

    return app


# For running with uvicorn directly
app = create_app()
