"""
Spreadsheet formula-injection guard.

Cells are neutralized on the comma-split line, without quoted-field CSV
parsing. The guard protects anyone who later opens the text in a spreadsheet;
it does not change what the extraction service sees in any meaningful way.
"""
from typing import Iterable

from core.schema import SanitizedCsv

FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")
ESCAPE_PREFIX = "'"


def sanitize_cell(cell: str) -> str:
    """
    Trim a cell and prefix it with a single quote if it could start a formula.

    A quoted cell does not itself start with a trigger, so the function is
    idempotent.
    """
    trimmed = cell.strip()
    if trimmed and trimmed[0] in FORMULA_TRIGGERS:
        return ESCAPE_PREFIX + trimmed
    return trimmed


def sanitize_line(line: str) -> str:
    """Sanitize every comma-separated cell of one line."""
    return ",".join(sanitize_cell(cell) for cell in line.split(","))


def sanitize_lines(lines: Iterable[str]) -> SanitizedCsv:
    """Sanitize every line, header included, preserving order and shape."""
    return SanitizedCsv(lines=tuple(sanitize_line(line) for line in lines))
