"""Tests for the application factory and lifespan wiring."""

from __future__ import annotations

from unittest.mock import patch

import pytest

fastapi = pytest.importorskip("fastapi")

from fastapi.testclient import TestClient  # noqa: E402

from review_api.app import create_app  # noqa: E402
from review_api.services.config import Settings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    return Settings(
        env="development",
        api_key="",
        repos_dir=str(tmp_path / "repos"),
        data_dir=str(tmp_path / "data"),
        analyzer_backend="openrouter",
        openrouter_api_key="test-key",
        analysis_window_size=2,
    )


def test_lifespan_wires_dependencies(settings):
    with patch("review_api.app.get_settings", return_value=settings):
        app = create_app()
        with TestClient(app) as client:
            health = client.get("/api/health").json()
            cloned = client.get("/api/repo/cloned")

    assert health == {"status": "healthy", "repositories_connected": True, "analyzer": "OpenRouter"}
    assert cloned.status_code == 200
    assert cloned.json() == {"repos": []}


def test_dependencies_cleared_on_shutdown(settings):
    with patch("review_api.app.get_settings", return_value=settings):
        app = create_app()
        with TestClient(app):
            pass
        health = TestClient(app).get("/api/health").json()

    assert health["repositories_connected"] is False


def test_configure_logging_runs_once(monkeypatch):
    from review_api.services import log_setup

    monkeypatch.setattr(log_setup, "_configured", False)
    with patch.object(log_setup.structlog, "configure") as configure:
        log_setup.configure_logging("debug", json_output=True)
        log_setup.configure_logging("info")

    assert configure.call_count == 1
    assert log_setup.logging.getLogger("httpx").level == log_setup.logging.WARNING
