"""
CSV ingestion service.
Runs one request through bounds, sanitization, extraction, normalization and
persistence, and frames the outcome as an HTTP status and JSON body.
"""
import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from core.bounds import check_csv_bounds
from core.categorize import RuleSet
from core.config import get_settings
from core.db import Database, get_db
from core.exceptions import (
    GENERIC_FAILURE_MESSAGE,
    CallerError,
    CsvIngestException,
    ExtractionServiceError,
    MissingAuth,
    MissingParameters,
    UnknownFailure,
)
from core.logger import setup_logger
from core.normalize import normalize_transactions, resolve_source_account_name
from core.sanitize import sanitize_lines
from core.schema import ExtractionResult, IngestRequest, IngestResult, SanitizedCsv
from llm.extract import extract_transactions

logger = setup_logger(__name__)

Extractor = Callable[[SanitizedCsv], ExtractionResult]


class IngestState(str, Enum):
    RECEIVED = "received"
    BOUNDS_CHECKED = "bounds_checked"
    SANITIZED = "sanitized"
    EXTRACTED = "extracted"
    NORMALIZED = "normalized"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    FAILED = "failed"


def is_retryable(exc: BaseException) -> bool:
    """Network failures and 5xx responses may be retried; nothing else is."""
    if not isinstance(exc, ExtractionServiceError):
        return False
    status = exc.status_code
    return status is None or status >= 500


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Extraction attempt {retry_state.attempt_number} failed, retrying: {exc}")


class IngestionService:
    """Service for processing CSV uploads into the ledger."""

    def __init__(
        self,
        db: Optional[Database] = None,
        extractor: Optional[Extractor] = None,
        retry_wait=None,
    ):
        """
        Initialize ingestion service.

        Args:
            db: Ledger store (defaults to the global instance)
            extractor: Callable turning sanitized CSV into records
            retry_wait: tenacity wait strategy between extraction attempts
        """
        self.settings = get_settings()
        self._db = db
        self.extractor = extractor or extract_transactions
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = get_db()
        return self._db

    def _extract(self, csv: SanitizedCsv) -> ExtractionResult:
        """Call the extractor, with bounded retries when configured."""
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.extraction_max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(self.extractor, csv)

    async def ingest(self, request: IngestRequest) -> IngestResult:
        """
        Run the pipeline for a validated request.

        Args:
            request: Parsed request body

        Returns:
            Number of rows written and how many of them carry a category

        Raises:
            CsvIngestException: On any stage failure
        """
        if not request.csv_content or not request.org_id:
            raise MissingParameters("Missing required parameters.")

        org_id = request.org_id
        state = IngestState.RECEIVED
        logger.info(f"[{org_id}] {state.value}: {len(request.csv_content)} characters")

        lines = check_csv_bounds(request.csv_content)
        state = IngestState.BOUNDS_CHECKED
        logger.debug(f"[{org_id}] {state.value}: {len(lines)} lines")

        csv = sanitize_lines(lines)
        state = IngestState.SANITIZED
        logger.debug(f"[{org_id}] {state.value}")

        loop = asyncio.get_running_loop()
        extraction = await loop.run_in_executor(None, self._extract, csv)
        state = IngestState.EXTRACTED
        logger.info(f"[{org_id}] {state.value}: {len(extraction.transactions)} records")

        rows = await loop.run_in_executor(None, self._normalize, request, extraction)
        state = IngestState.NORMALIZED
        logger.debug(f"[{org_id}] {state.value}: {len(rows)} rows")

        imported = await loop.run_in_executor(None, self.db.insert_transactions, org_id, rows)
        state = IngestState.PERSISTED
        categorized = sum(1 for row in rows if row.category) if imported else 0
        logger.info(f"[{org_id}] {state.value}: {imported} imported, {categorized} categorized")

        return IngestResult(imported=imported, categorized=categorized)

    def _normalize(self, request: IngestRequest, extraction: ExtractionResult):
        org_id = request.org_id
        source_account_name = resolve_source_account_name(
            request.account_name,
            request.account_id,
            lambda account_id: self.db.get_account_name(org_id, account_id),
        )
        rules = RuleSet(self.db.get_vendor_rules(org_id), self.db.get_rules(org_id))
        return normalize_transactions(
            extraction.transactions,
            org_id=org_id,
            account_id=request.account_id,
            source_account_name=source_account_name,
            institution=request.institution,
            rules=rules,
        )

    async def handle(
        self,
        authorization: Optional[str],
        body: Any,
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Handle one ingestion call end to end.

        Caller-fixable errors get their own message; every other failure is
        logged in full and answered with the same generic message.

        Args:
            authorization: Value of the Authorization header
            body: Decoded JSON body (untrusted)

        Returns:
            Tuple of (HTTP status, JSON body)
        """
        try:
            if not authorization or not authorization.strip():
                raise MissingAuth("Missing authorization header.")

            if not isinstance(body, dict):
                raise UnknownFailure("Request body is not a JSON object")
            try:
                request = IngestRequest.model_validate(body)
            except ValidationError as e:
                raise UnknownFailure(
                    "Request body failed validation",
                    details={"errors": e.errors(include_input=False)},
                )

            result = await self.ingest(request)
            logger.info(f"{IngestState.RESPONDED.value}: imported={result.imported}")
            return 200, {"success": True, "imported": result.imported}

        except CallerError as e:
            logger.info(f"{IngestState.FAILED.value}({type(e).__name__}): {e.message}")
            return e.status_code, {"error": e.user_message}

        except CsvIngestException as e:
            self._log_failure(e)
            return 500, {"error": GENERIC_FAILURE_MESSAGE}

        except Exception as e:
            self._log_failure(UnknownFailure(str(e)), cause=e)
            return 500, {"error": GENERIC_FAILURE_MESSAGE}

    @staticmethod
    def _log_failure(error: CsvIngestException, cause: Optional[BaseException] = None) -> None:
        kind = type(cause).__name__ if cause is not None else type(error).__name__
        logger.error(
            f"{IngestState.FAILED.value}({kind}): Error processing CSV: {error.message} | "
            f"details={error.details} | timestamp={datetime.now(timezone.utc).isoformat()}",
            exc_info=True,
        )
