"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="CSV Transaction Ingestion Service", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Extraction service (OpenAI-compatible chat completions)
    extraction_api_key: Optional[str] = Field(default=None, alias="EXTRACTION_API_KEY")
    extraction_gateway_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1/chat/completions",
        alias="EXTRACTION_GATEWAY_URL",
    )
    extraction_model: str = Field(default="google/gemini-2.5-flash", alias="EXTRACTION_MODEL")
    extraction_timeout: int = Field(default=60, alias="EXTRACTION_TIMEOUT")
    extraction_verify_ssl: bool = Field(default=True, alias="EXTRACTION_VERIFY_SSL")
    extraction_max_attempts: int = Field(default=1, alias="EXTRACTION_MAX_ATTEMPTS")

    # Upload bounds
    max_csv_bytes: int = Field(default=5 * 1024 * 1024, alias="MAX_CSV_BYTES")
    max_csv_rows: int = Field(default=1000, alias="MAX_CSV_ROWS")

    # Storage
    database_path: str = Field(default="ledger.db", alias="DATABASE_PATH")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("extraction_max_attempts")
    @classmethod
    def validate_attempts(cls, v):
        """Validate extraction attempt count."""
        if v < 1:
            raise ValueError("Extraction attempts must be at least 1")
        if v > 5:
            raise ValueError("Extraction attempts should not exceed 5")
        return v

    @field_validator("max_csv_bytes", "max_csv_rows")
    @classmethod
    def validate_bounds(cls, v):
        if v < 1:
            raise ValueError("CSV bounds must be positive")
        return v

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
