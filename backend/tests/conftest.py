"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient

from mediabox.config import AppConfig, StorageConfig, UploadConfig
from mediabox.main import create_app


@pytest.fixture
def upload_dir(tmp_path):
    """Base upload directory isolated per test."""
    return tmp_path / "uploads"


@pytest.fixture
def app_config(upload_dir):
    """Default configuration pointed at a temporary upload directory."""
    return AppConfig(
        upload=UploadConfig(upload_dir=str(upload_dir)),
        storage=StorageConfig(backend="disk"),
    )


@pytest.fixture
def policy(app_config):
    """The default upload policy (10 MB, default extension lists)."""
    return app_config.upload_policy()


@pytest.fixture
def api_client(app_config):
    """Provide a TestClient for an app writing to the temporary upload dir."""
    return TestClient(create_app(app_config))
