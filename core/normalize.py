"""
Normalization of extracted records into ledger rows.
Handles direction from sign, vendor cleanup, and source-account naming.
"""
import re
from decimal import Decimal
from typing import Callable, List, Optional

from core.categorize import RuleSet
from core.logger import setup_logger
from core.schema import ExtractedTransaction, LedgerTransaction

logger = setup_logger(__name__)

FALLBACK_ACCOUNT_NAME = "CSV Import"
IMPORT_CHANNEL = "csv"
DEFAULT_IMPORT_ORIGIN = "bank_csv"

_WHITESPACE = re.compile(r"\s+")


def direction_for(amount: Decimal) -> str:
    """Zero and positive amounts are credits; negative amounts are debits."""
    return "credit" if amount >= 0 else "debit"


def clean_vendor(vendor: Optional[str]) -> Optional[str]:
    """Collapse whitespace in a vendor name; blank becomes None."""
    if vendor is None:
        return None
    cleaned = _WHITESPACE.sub(" ", vendor).strip()
    return cleaned or None


def clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def import_origin(institution: Optional[str]) -> str:
    """Provenance tag for rows imported through this path."""
    if institution:
        return f"{institution.lower()}_csv"
    return DEFAULT_IMPORT_ORIGIN


def resolve_source_account_name(
    account_name: Optional[str],
    account_id: Optional[str],
    lookup: Optional[Callable[[str], Optional[str]]] = None,
) -> str:
    """
    Pick the display name for the account the CSV came from.

    Order: caller-supplied name, stored name for account_id, "CSV Import".
    The lookup is only called when there is an account_id and no name.
    """
    name = clean_text(account_name)
    if name:
        return name

    if account_id and lookup is not None:
        stored = clean_text(lookup(account_id))
        if stored:
            return stored

    return FALLBACK_ACCOUNT_NAME


def normalize_transaction(
    txn: ExtractedTransaction,
    org_id: str,
    account_id: Optional[str],
    source_account_name: str,
    institution: Optional[str] = None,
    rules: Optional[RuleSet] = None,
) -> LedgerTransaction:
    """Map one extracted record onto the ledger shape."""
    direction = direction_for(txn.amount)
    vendor = clean_vendor(txn.vendor)
    description = txn.description.strip()

    category = clean_text(txn.category)
    if category is None and rules is not None:
        category = rules.pick_category(description, vendor, direction)

    return LedgerTransaction(
        org_id=org_id,
        account_id=account_id,
        txn_date=txn.date,
        description=description,
        amount=abs(txn.amount),
        direction=direction,
        category=category,
        vendor_clean=vendor,
        source_account_name=source_account_name,
        institution=clean_text(institution),
        imported_via=IMPORT_CHANNEL,
        imported_from=import_origin(clean_text(institution)),
    )


def normalize_transactions(
    transactions: List[ExtractedTransaction],
    org_id: str,
    account_id: Optional[str],
    source_account_name: str,
    institution: Optional[str] = None,
    rules: Optional[RuleSet] = None,
) -> List[LedgerTransaction]:
    """
    Normalize a batch, preserving order.

    Records without an amount cannot be booked and are dropped.
    """
    normalized = []
    for idx, txn in enumerate(transactions):
        if txn.amount is None:
            logger.warning(f"Extracted record {idx} has no amount, skipping")
            continue
        normalized.append(
            normalize_transaction(txn, org_id, account_id, source_account_name, institution, rules)
        )

    if len(normalized) != len(transactions):
        logger.info(f"Normalized {len(normalized)} of {len(transactions)} extracted records")
    return normalized
