"""
Canonical pipeline schemas.

- statement: RawLine, HeaderInfo, CandidateTransaction, Transaction, ParseResult
- dedupe: dedupe keys and deterministic transaction ids
"""

from .dedupe import (
    compute_file_hash,
    dedupe_key,
    generate_transaction_id,
    remove_duplicate_transactions,
)
from .statement import (
    AccountInfo,
    CandidateTransaction,
    Direction,
    HeaderInfo,
    ParseResult,
    RawLine,
    Transaction,
)

__all__ = [
    "AccountInfo",
    "CandidateTransaction",
    "Direction",
    "HeaderInfo",
    "ParseResult",
    "RawLine",
    "Transaction",
    "compute_file_hash",
    "dedupe_key",
    "generate_transaction_id",
    "remove_duplicate_transactions",
]
