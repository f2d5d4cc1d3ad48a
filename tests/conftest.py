"""
Shared fixtures: isolated settings and a throwaway ledger database per test.
"""
import pytest

from core.config import reset_settings
from core.db import Database, reset_db

SETTINGS_ENV = [
    "APP_NAME",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "EXTRACTION_API_KEY",
    "EXTRACTION_GATEWAY_URL",
    "EXTRACTION_MODEL",
    "EXTRACTION_TIMEOUT",
    "EXTRACTION_VERIFY_SSL",
    "EXTRACTION_MAX_ATTEMPTS",
    "MAX_CSV_BYTES",
    "MAX_CSV_ROWS",
    "DATABASE_PATH",
]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Start every test from default settings with a test key and temp database."""
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("EXTRACTION_API_KEY", "test-key")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "ledger.db"))
    reset_settings()
    reset_db()
    yield
    reset_settings()
    reset_db()


@pytest.fixture
def db(tmp_path):
    """Initialized ledger database."""
    database = Database(str(tmp_path / "ledger.db"))
    database.init_db()
    return database
