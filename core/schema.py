"""
Pydantic schemas for the ingestion pipeline.
Covers the inbound request, the extraction contract and the ledger row.
"""
import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Tuple

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)


def blank_to_none(v):
    """Map empty or whitespace-only strings to None."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


def amount_to_decimal(v):
    """Route floats through str so 42.5 does not become 42.4999..."""
    if isinstance(v, float):
        return Decimal(str(v))
    return v


OptionalText = Annotated[Optional[str], BeforeValidator(blank_to_none)]


class IngestRequest(BaseModel):
    """Body of a CSV ingestion call. Every field is untrusted."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    csv_content: Optional[str] = Field(None, alias="csvContent")
    org_id: OptionalText = Field(None, alias="orgId")
    account_id: OptionalText = Field(None, alias="accountId")
    account_name: OptionalText = Field(None, alias="accountName")
    institution: OptionalText = None


class SanitizedCsv(BaseModel):
    """Neutralized CSV lines, ready to hand to the extraction service."""

    model_config = ConfigDict(frozen=True)

    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)


class ExtractedTransaction(BaseModel):
    """A single record as returned by the extraction service."""

    model_config = ConfigDict(extra="ignore")

    date: datetime.date
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    amount: Annotated[Optional[Decimal], BeforeValidator(amount_to_decimal)] = None
    category: OptionalText = None
    vendor: OptionalText = None

    @field_validator("date", mode="before")
    @classmethod
    def iso_date_only(cls, v):
        """Accept YYYY-MM-DD strings only, not timestamps or epoch numbers."""
        if isinstance(v, str):
            return datetime.date.fromisoformat(v.strip())
        if isinstance(v, datetime.date):
            return v
        raise ValueError("date must be an ISO calendar date string")

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, v):
        if v is not None and not v.is_finite():
            raise ValueError("amount must be a finite number")
        return v


class ExtractionResult(BaseModel):
    """Validated payload of the parse_transactions function call."""

    model_config = ConfigDict(extra="ignore")

    transactions: List[ExtractedTransaction]


class LedgerTransaction(BaseModel):
    """Normalized, organization-scoped row for the transactions table."""

    org_id: str
    account_id: Optional[str] = None
    txn_date: datetime.date
    description: str
    amount: Decimal = Field(..., ge=0)
    direction: Literal["debit", "credit"]
    category: Optional[str] = None
    vendor_clean: Optional[str] = None
    source_account_name: str = Field(..., min_length=1)
    institution: Optional[str] = None
    imported_via: Literal["csv"] = "csv"
    imported_from: str


class IngestResult(BaseModel):
    """Outcome of one ingestion run."""

    imported: int
    categorized: int = 0
