"""Pytest configuration and fixtures for all tests."""

import os
import tempfile
from pathlib import Path

import pytest

from fxjournal.lib.db import init_db, reset_db, reset_engine


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Initialize test database before any tests run.

    Creates a temporary database for testing that is automatically cleaned up.
    Uses session scope so database is created once per test session.
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        test_db_path = Path(tmp.name)

    # Set environment variable for test database BEFORE initializing
    os.environ["FXJOURNAL_DB_PATH"] = str(test_db_path)

    init_db(test_db_path)

    yield test_db_path

    reset_engine()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(autouse=True)
def reset_database_between_tests(setup_test_database):
    """Reset database state between each test.

    This ensures test isolation by clearing all data between tests
    while keeping the schema intact.
    """
    reset_engine()
    reset_db(setup_test_database)

    yield


@pytest.fixture(autouse=True)
def isolated_local_settings(tmp_path, monkeypatch):
    """Keep local overrides and log files out of the user's home directory."""
    settings_path = tmp_path / "local_settings.json"
    monkeypatch.setenv("FXJOURNAL_SETTINGS_PATH", str(settings_path))
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "fxjournal.log"))
    return settings_path


@pytest.fixture
def csv_dir():
    """Path to test CSV directory."""
    return Path(__file__).parent / "fixtures" / "csv"
