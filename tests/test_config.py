"""
Unit tests for configuration module.
"""
import pytest
from pydantic import ValidationError

from core.config import get_settings, reset_settings


def test_settings_defaults():
    """Test default configuration values."""
    settings = get_settings()
    assert settings.app_name == "CSV Transaction Ingestion Service"
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.extraction_api_key == "test-key"
    assert settings.extraction_model == "google/gemini-2.5-flash"
    assert settings.extraction_verify_ssl is True
    assert settings.extraction_max_attempts == 1
    assert settings.max_csv_bytes == 5 * 1024 * 1024
    assert settings.max_csv_rows == 1000


def test_settings_missing_api_key_is_allowed(monkeypatch):
    """A missing key is reported by the extraction client, not at load time."""
    monkeypatch.delenv("EXTRACTION_API_KEY")
    reset_settings()
    assert get_settings().extraction_api_key is None


def test_settings_validation_port(monkeypatch):
    """Test port validation."""
    monkeypatch.setenv("PORT", "99999")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_log_level(monkeypatch):
    """Test log level validation."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_attempts(monkeypatch):
    monkeypatch.setenv("EXTRACTION_MAX_ATTEMPTS", "0")

    reset_settings()
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_log_level_is_uppercased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    reset_settings()
    assert get_settings().log_level == "DEBUG"


def test_settings_singleton():
    """Test settings singleton behavior."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2
