"""
Rule-based categorization for imported transactions.

Applied only when the extraction service did not supply a category.
Order: Square credits, then vendor rules, then general rules.
"""
import re
from typing import Any, Dict, List, Optional

from core.logger import setup_logger

logger = setup_logger(__name__)

SQUARE_INCOME_CATEGORY = "Income"
_SQUARE = re.compile(r"square", re.IGNORECASE)


def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"Skipping invalid rule pattern {pattern!r}: {e}")
        return None


def _matches(pattern: Optional[re.Pattern], description: str, vendor: Optional[str]) -> bool:
    if pattern is None:
        return False
    return bool(pattern.search(description)) or bool(vendor and pattern.search(vendor))


class RuleSet:
    """Compiled categorization rules for one organization."""

    def __init__(
        self,
        vendor_rules: Optional[List[Dict[str, Any]]] = None,
        rules: Optional[List[Dict[str, Any]]] = None,
    ):
        self.vendor_rules = [
            (_compile(r["vendor_pattern"]), r.get("category"), r.get("direction_filter"))
            for r in (vendor_rules or [])
        ]
        self.rules = [
            (_compile(r["match_pattern"]), r.get("default_category"))
            for r in (rules or [])
        ]

    def pick_category(self, description: str, vendor: Optional[str], direction: str) -> Optional[str]:
        """Return the category of the first matching rule, or None."""
        if direction == "credit" and _SQUARE.search(description):
            return SQUARE_INCOME_CATEGORY

        for pattern, category, direction_filter in self.vendor_rules:
            if direction_filter and direction_filter != direction:
                continue
            if _matches(pattern, description, vendor):
                return category or None

        for pattern, category in self.rules:
            if _matches(pattern, description, vendor):
                return category or None

        return None
