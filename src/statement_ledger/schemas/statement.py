"""
Canonical statement parsing objects (SSOT).

This is THE single source of truth for data flowing through the
statement-to-ledger pipeline. Every stage maps into/out of these types:

    RawLine -> HeaderInfo -> CandidateTransaction -> Transaction -> ParseResult
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    """Money direction relative to the statement's bank account."""

    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class RawLine:
    """A trimmed, non-empty line of statement text with its source line index."""

    index: int
    text: str


@dataclass
class HeaderInfo:
    """
    Location and column mapping of a tabular header row.

    Column indexes are -1 when the column was not found. ``found=False`` is a
    normal state that sends extraction down the pattern-only strategies.
    """

    found: bool = False
    line_index: int = -1
    text: str = ""
    columns: list[str] = field(default_factory=list)
    date_index: int = -1
    description_index: int = -1
    money_in_index: int = -1
    money_out_index: int = -1
    balance_index: int = -1

    @property
    def has_money_column(self) -> bool:
        return self.money_in_index != -1 or self.money_out_index != -1


@dataclass
class CandidateTransaction:
    """
    Transaction proposed by one extraction strategy.

    May be a duplicate or spurious; the date is still the raw string found in
    the statement. ``amount`` is always an unsigned magnitude.
    """

    date: str
    description: str
    amount: Decimal
    direction: Direction
    currency: str = "GBP"
    category: str = "Uncategorized"

    # Provenance
    strategy: str = ""
    confidence: float = 0.0

    @property
    def is_income(self) -> bool:
        return self.direction == Direction.INCOME


@dataclass
class Transaction:
    """
    Deduplicated, date-normalized and coded transaction.

    ``coded_at`` is excluded from equality so that re-running the pipeline on
    the same bytes compares equal.
    """

    transaction_id: str
    date: str  # YYYY-MM-DD when the statement used DD/MM/YYYY, raw otherwise
    description: str
    amount: Decimal
    direction: Direction
    currency: str
    category: str
    account_code: Optional[str] = None
    coding_confidence: float = 0.0
    coded_at: Optional[str] = field(default=None, compare=False)
    notes: Optional[str] = None

    # Provenance
    strategy: str = ""
    extraction_confidence: float = 0.0

    @property
    def is_income(self) -> bool:
        return self.direction == Direction.INCOME

    @property
    def is_coded(self) -> bool:
        return self.account_code is not None

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "transaction_id": self.transaction_id,
            "date": self.date,
            "description": self.description,
            "amount": str(self.amount),
            "type": self.direction.value,
            "currency": self.currency,
            "category": self.category,
            "account_code": self.account_code,
            "coding_confidence": self.coding_confidence,
            "coded_at": self.coded_at,
            "notes": self.notes,
            "strategy": self.strategy,
            "extraction_confidence": self.extraction_confidence,
        }


@dataclass
class AccountInfo:
    """Best-effort statement metadata. Numbers are always masked."""

    bank_name: str = "Unknown"
    account_type: str = "Unknown"
    account_number: str = "****MASKED****"
    sort_code: str = "**-**-**"
    statement_period: str = "Unknown"
    currency: str = "GBP"

    def to_dict(self) -> dict:
        return {
            "bank_name": self.bank_name,
            "account_type": self.account_type,
            "account_number": self.account_number,
            "sort_code": self.sort_code,
            "statement_period": self.statement_period,
            "currency": self.currency,
        }


@dataclass
class ParseResult:
    """
    Sole output contract of the pipeline.

    Never raised; failures are ``success=False`` with an ``error`` message and
    an empty transaction list.
    """

    success: bool
    transactions: list[Transaction] = field(default_factory=list)
    account_info: AccountInfo = field(default_factory=AccountInfo)
    error: Optional[str] = None
    strategy: Optional[str] = None
    duplicates_removed: int = 0

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def total_income(self) -> Decimal:
        return sum((t.amount for t in self.transactions if t.is_income), Decimal("0"))

    @property
    def total_expenses(self) -> Decimal:
        return sum((t.amount for t in self.transactions if not t.is_income), Decimal("0"))

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        data = {
            "success": self.success,
            "transactions": [t.to_dict() for t in self.transactions],
            "account_info": self.account_info.to_dict(),
            "transaction_count": self.transaction_count,
            "strategy": self.strategy,
            "duplicates_removed": self.duplicates_removed,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def failure(cls, error: str, account_info: Optional[AccountInfo] = None) -> "ParseResult":
        return cls(
            success=False,
            transactions=[],
            account_info=account_info or AccountInfo(),
            error=error,
        )
