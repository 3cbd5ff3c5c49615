"""
Global pytest fixtures for the shortener test suite.

Responsibilities:
    - Provide explicit Settings (no environment leakage between tests)
    - Provide isolated in-memory and file-journal storage fixtures
    - Provide a fresh FastAPI TestClient via the app factory for HTTP tests

Why an app factory?
    Using `create_app()` with an injected storage ensures each test gets fresh
    state, eliminating cross-test flakiness.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortener.config import Settings
from shortener.storage.file_storage import FileStorage
from shortener.storage.memory_storage import MemoryStorage

BASE_URL = "http://x/"


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL, secret_key="test-secret")


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Fresh in-memory storage backend."""
    return MemoryStorage()


@pytest.fixture
def journal_path(tmp_path) -> str:
    return str(tmp_path / "shortener_data.json")


@pytest.fixture
def file_storage(journal_path) -> FileStorage:
    """Fresh file-journal storage backed by a temporary file."""
    return FileStorage(journal_path)


@pytest.fixture
def app(settings, memory_storage):
    return create_app(settings, storage=memory_storage)


@pytest.fixture
def client(app) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Notes:
        - The client keeps cookies, so consecutive requests act as one user.
    """
    return TestClient(app)
