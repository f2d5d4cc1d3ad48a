"""
Resource bounds for uploaded CSV text.
Checked before sanitization and before any external call.
"""
from typing import List, Optional

from core.config import get_settings
from core.exceptions import EmptyInput, PayloadTooLarge, TooManyRows
from core.logger import setup_logger

logger = setup_logger(__name__)

BYTES_PER_MB = 1024 * 1024


def non_blank_lines(raw: str) -> List[str]:
    """Split on newlines and drop lines that are empty after trimming."""
    return [line for line in raw.split("\n") if line.strip()]


def check_csv_bounds(
    raw: str,
    max_bytes: Optional[int] = None,
    max_rows: Optional[int] = None,
) -> List[str]:
    """
    Enforce the byte-size and row-count ceilings on raw CSV text.

    Args:
        raw: Raw CSV text as submitted
        max_bytes: UTF-8 byte ceiling (defaults to settings)
        max_rows: Data-row ceiling, header excluded (defaults to settings)

    Returns:
        The non-blank lines of the input, header included

    Raises:
        PayloadTooLarge: If the UTF-8 size exceeds the ceiling
        EmptyInput: If there are no non-blank lines
        TooManyRows: If there are more data rows than allowed
    """
    settings = get_settings()
    max_bytes = max_bytes or settings.max_csv_bytes
    max_rows = max_rows or settings.max_csv_rows

    # Lone surrogates are measured as 3 bytes each
    size_bytes = len(raw.encode("utf-8", errors="surrogatepass"))
    if size_bytes > max_bytes:
        logger.warning(f"Rejected CSV of {size_bytes} bytes (limit {max_bytes})")
        raise PayloadTooLarge(
            f"CSV file too large. Maximum size is {max_bytes // BYTES_PER_MB}MB."
            if max_bytes % BYTES_PER_MB == 0
            else f"CSV file too large. Maximum size is {max_bytes} bytes.",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes},
        )

    lines = non_blank_lines(raw)
    if not lines:
        raise EmptyInput("CSV file is empty")

    # One extra line is allowed for the header
    if len(lines) > max_rows + 1:
        logger.warning(f"Rejected CSV with {len(lines)} lines (limit {max_rows + 1})")
        raise TooManyRows(
            f"CSV has too many rows. Maximum is {max_rows} transactions.",
            details={"line_count": len(lines), "max_rows": max_rows},
        )

    logger.debug(f"CSV within bounds: {size_bytes} bytes, {len(lines)} lines")
    return lines
