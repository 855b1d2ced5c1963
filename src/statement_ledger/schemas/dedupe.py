"""
Dedupe keys and transaction identity (CRITICAL).

This module defines THE deterministic identity functions for transactions.

Two different notions of identity exist:

1. Dedupe key: (date, amount, description[:10])
   - Collapses the same statement line emitted twice by overlapping
     extraction heuristics
   - Deliberately coarse: the short description prefix tolerates minor
     formatting differences between strategies

2. Transaction id: SHA256(amount|date|direction|description|position)[:16]
   - Stable across runs on the same document bytes
   - Used as the persisted identity of a coded transaction
"""

import hashlib
import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol, TypeVar

logger = logging.getLogger(__name__)

# ============================================================================
# SSOT Constants
# ============================================================================

# Characters of the description that take part in the dedupe key
DESCRIPTION_PREFIX_LENGTH = 10

# Length of the hash prefix used as transaction id
HASH_PREFIX_LENGTH = 16


class _Dedupable(Protocol):
    date: str
    amount: Decimal
    description: str


T = TypeVar("T", bound=_Dedupable)


def _normalize_amount(amount: Decimal) -> str:
    """Normalize amount to a 2 decimal place string for hashing."""
    if not isinstance(amount, Decimal):
        raise TypeError(f"amount must be Decimal, got: {type(amount).__name__}")

    return f"{amount:.2f}"


def _normalize_string(value: str | None) -> str:
    """Normalize a string for hashing (lowercase, strip whitespace)."""
    if not value:
        return ""
    return value.strip().lower()


def dedupe_key(date: str, amount: Decimal, description: str | None) -> tuple[str, Decimal, str]:
    """
    The dedupe key of a candidate transaction.

    Examples:
        >>> dedupe_key("01/03/2024", Decimal("45.20"), "TESCO STORES 1234")
        ('01/03/2024', Decimal('45.20'), 'TESCO STOR')
    """
    return (date, amount, (description or "")[:DESCRIPTION_PREFIX_LENGTH])


def remove_duplicate_transactions(transactions: Iterable[T]) -> list[T]:
    """
    Drop repeated transactions, keeping the first occurrence of each key.

    Order of first occurrences is preserved.
    """
    seen: set[tuple[str, Decimal, str]] = set()
    unique: list[T] = []

    for tx in transactions:
        key = dedupe_key(tx.date, tx.amount, tx.description)
        if key in seen:
            logger.debug(f"Dropping duplicate transaction: {key}")
            continue
        seen.add(key)
        unique.append(tx)

    return unique


def compute_transaction_hash(
    amount: Decimal,
    date: str,
    direction: str,
    description: str | None = None,
    position: int = 0,
) -> str:
    """
    Compute a deterministic hash for a transaction based on its core fields.

    Hash components (in order):
    - amount: Normalized to 2 decimal places
    - date: As stored on the transaction
    - direction: "income" or "expense"
    - description: Normalized (lowercase, stripped)
    - position: Ordinal within the parsed statement

    Returns:
        64-character lowercase hex SHA256 hash
    """
    canonical = "|".join(
        [
            _normalize_amount(amount),
            date.strip() if date else "",
            _normalize_string(direction),
            _normalize_string(description),
            str(position),
        ]
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def generate_transaction_id(
    amount: Decimal,
    date: str,
    direction: str,
    description: str | None = None,
    position: int = 0,
) -> str:
    """
    Generate the stable id of a parsed transaction.

    Examples:
        >>> len(generate_transaction_id(Decimal("45.20"), "2024-03-01", "expense", "TESCO"))
        16
    """
    if position < 0:
        raise ValueError(f"position must be a non-negative integer, got: {position}")
    return compute_transaction_hash(amount, date, direction, description, position)[
        :HASH_PREFIX_LENGTH
    ]


def compute_file_hash(file_bytes: bytes) -> str:
    """
    Compute SHA256 hash of file bytes.

    Args:
        file_bytes: Raw file content

    Returns:
        64-character lowercase hex string
    """
    return hashlib.sha256(file_bytes).hexdigest()

