"""
Ledger store (SQLite-based).

Lightweight persistent DB for tracking:
- Statement uploads and their processing status
- Extracted transactions per user
- Account coding of each transaction

Enforces uniqueness of transaction_id within an upload.
"""

from .sqlite_store import (
    CodingStatus,
    LedgerStore,
    TransactionRecord,
    UploadRecord,
    UploadStatus,
)

__all__ = [
    "LedgerStore",
    "TransactionRecord",
    "UploadRecord",
    "UploadStatus",
    "CodingStatus",
]
