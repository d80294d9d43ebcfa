"""Shared fixtures for the webhook logger test suite."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from webhook_logger.app import create_app
from webhook_logger.config import Settings
from webhook_logger.records.store import RecordStore

GITHUB_SECRET = "github-test-secret"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temp dir, no GitHub secret."""
    return Settings(
        _env_file=None,
        webhooks_dir=tmp_path / "webhooks",
        logs_dir=tmp_path / "logs",
        github_secret="",
    )


@pytest.fixture()
def secret_settings(settings: Settings) -> Settings:
    """Same as `settings` but with GitHub verification enabled."""
    return settings.model_copy(update={"github_secret": GITHUB_SECRET})


@pytest.fixture()
def store(settings: Settings) -> RecordStore:
    return RecordStore(settings.webhooks_dir)


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings, configure_logs=False)


@pytest.fixture()
def client(app):
    """TestClient without a GitHub secret."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def secret_client(secret_settings: Settings):
    """TestClient with GitHub signature verification enabled."""
    app = create_app(secret_settings, configure_logs=False)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
