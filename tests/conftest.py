"""Pytest configuration and shared fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.main import app


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path to a throwaway SQLite database file."""
    return str(tmp_path / "focusboard_test.db")


@pytest.fixture
def test_client() -> Generator[TestClient]:
    """Provide FastAPI test client without running the app lifespan."""
    yield TestClient(app)
    app.dependency_overrides.clear()
