"""Central configuration for the code review service."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env file before reading any env vars
load_dotenv()


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Core
    env: str = os.getenv("REVIEWER_ENV", "development")
    log_level: str = os.getenv("REVIEWER_LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("REVIEWER_LOG_JSON", "false").lower() == "true"
    api_key: str = os.getenv("REVIEWER_API_KEY", "")
    host: str = os.getenv("REVIEWER_HOST", "0.0.0.0")
    port: int = int(os.getenv("REVIEWER_PORT", "3001"))
    cors_origins: str = os.getenv("REVIEWER_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    rate_limit_per_minute: int = int(os.getenv("REVIEWER_RATE_LIMIT_PER_MINUTE", "60"))

    # Storage
    repos_dir: str = os.getenv("REVIEWER_REPOS_DIR", "./temp/repos")
    data_dir: str = os.getenv("REVIEWER_DATA_DIR", "./data")

    # Git
    default_branch: str = os.getenv("REVIEWER_DEFAULT_BRANCH", "main")
    clone_depth: int = int(os.getenv("REVIEWER_CLONE_DEPTH", "1"))  # 0 = full history
    git_timeout_seconds: int = int(os.getenv("REVIEWER_GIT_TIMEOUT_SECONDS", "300"))
    git_access_token: str = os.getenv("GITHUB_ACCESS_TOKEN", "")

    # Analyzer
    analyzer_backend: str = os.getenv("ANALYZER_BACKEND", "openrouter")
    openrouter_api_key: str = os.getenv("OPENROUTER_API_KEY", "")
    openrouter_base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    site_url: str = os.getenv("SITE_URL", "http://localhost:3001")
    analysis_timeout_seconds: int = int(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "120"))
    analysis_max_tokens: int = int(os.getenv("ANALYSIS_MAX_TOKENS", "4000"))
    analysis_temperature: float = float(os.getenv("ANALYSIS_TEMPERATURE", "0.3"))
    analysis_window_size: int = int(os.getenv("ANALYSIS_WINDOW_SIZE", "3"))
    debug_analysis_logs: bool = os.getenv("DEBUG_ANALYSIS_LOGS", "false").lower() in ("true", "1")

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def mappings_file(self) -> Path:
        return Path(self.data_dir) / "repo-mappings.json"

    def validate_production_settings(self) -> list[str]:
        """Return warnings for insecure settings in production."""
        warnings: list[str] = []
        if self.is_production:
            if not self.api_key:
                warnings.append("REVIEWER_API_KEY is not set — API is unauthenticated")
            if self.debug_analysis_logs:
                warnings.append("DEBUG_ANALYSIS_LOGS is enabled — code previews will be logged")
        return warnings

    def validate_required_keys(self) -> list[str]:
        """Check that the selected analyzer backend is usable.

        Returns a list of warning messages for missing configuration.
        """
        warnings: list[str] = []

        if self.analyzer_backend == "openrouter" and not self.openrouter_api_key:
            warnings.append("OPENROUTER_API_KEY is not set — every analysis will fail")

        if self.analysis_window_size < 1:
            warnings.append("ANALYSIS_WINDOW_SIZE must be at least 1 — falling back to 1")

        if not self.git_access_token:
            warnings.append("GITHUB_ACCESS_TOKEN is not set — only public repositories can be cloned")

        return warnings


@lru_cache
def get_settings() -> Settings:
    return Settings()
