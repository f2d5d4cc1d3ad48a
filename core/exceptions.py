"""
Custom exceptions for the CSV ingestion pipeline.

Caller errors carry a message that is safe to return to the client.
Everything else is operator-facing and must only reach the log.
"""
from typing import Any, Dict, Optional


GENERIC_FAILURE_MESSAGE = (
    "Failed to process CSV transactions. Please check the file format and try again."
)


class CsvIngestException(Exception):
    """Base exception for all CSV ingestion errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details (operator log only)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CallerError(CsvIngestException):
    """Raised for problems the caller can fix by resubmitting."""

    status_code = 400

    @property
    def user_message(self) -> str:
        return self.message


class MissingAuth(CallerError):
    """Raised when the authorization header is absent."""

    status_code = 401


class MissingParameters(CallerError):
    """Raised when csvContent or orgId is missing."""
    pass


class PayloadTooLarge(CallerError):
    """Raised when the CSV exceeds the byte-size ceiling."""
    pass


class TooManyRows(PayloadTooLarge):
    """Raised when the CSV exceeds the row-count ceiling."""
    pass


class EmptyInput(CallerError):
    """Raised when the CSV has no non-blank lines."""
    pass


class ExtractionServiceError(CsvIngestException):
    """Raised when the extraction service call fails or returns non-2xx."""

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class ExtractionContractViolation(CsvIngestException):
    """Raised when the extraction response lacks a valid structured payload."""
    pass


class ConfigurationError(CsvIngestException):
    """Raised when configuration is invalid."""
    pass


class PersistenceError(CsvIngestException):
    """Raised when reading from or writing to the ledger store fails."""
    pass


class UnknownFailure(CsvIngestException):
    """Raised for anything unanticipated at the orchestration boundary."""
    pass
