"""
Main entry point for the CSV transaction ingestion service.

This module initializes the application, loads configuration,
prepares the ledger store and starts the FastAPI server.
"""
import sys
from pathlib import Path

# Add project root to Python path for module imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

from core.config import get_settings
from core.exceptions import ConfigurationError, PersistenceError
from core.logger import setup_logger

# Load environment variables from .env file
_env_file = PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    print("Warning: .env file not found. Using environment variables or defaults.")

logger = setup_logger(__name__)


def main():
    """Main application entry point."""
    try:
        # Load and validate configuration
        settings = get_settings()

        if not settings.extraction_api_key:
            raise ConfigurationError(
                "EXTRACTION_API_KEY environment variable not set",
                details={"required_key": "EXTRACTION_API_KEY"}
            )

        from core.db import get_db

        get_db()

        import uvicorn
        from app.api import app

        logger.info(f"Starting {settings.app_name}")
        logger.info(f"Extraction Model: {settings.extraction_model}")
        logger.info(f"Log Level: {settings.log_level}")
        logger.info(f"CSV Limits: {settings.max_csv_bytes:,} bytes, {settings.max_csv_rows} rows")
        logger.info(f"Extraction Attempts: {settings.extraction_max_attempts}")
        logger.info(f"Database: {settings.database_path}")

        logger.info(f"Starting server on {settings.host}:{settings.port}")

        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower()
        )

    except (ConfigurationError, PersistenceError) as e:
        logger.error(f"Startup error: {e.message}")
        if e.details:
            logger.error(f"Details: {e.details}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
