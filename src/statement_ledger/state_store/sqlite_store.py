"""
SQLite-based ledger store implementation.

Tables:
- uploads: One row per processed statement document
- transactions: Deduplicated transactions of each upload, with coding columns
  (added by migration 001)

Transaction dates are stored as produced by the pipeline: ISO (YYYY-MM-DD)
when the statement used DD/MM/YYYY, raw text otherwise. Date range filters
compare strings and are only meaningful for ISO dates.
"""

import json
import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from ..schemas.statement import Direction, Transaction

logger = logging.getLogger(__name__)


def _iso(moment: datetime) -> str:
    # Fixed-width timestamps so that string comparison orders them
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _utc_now() -> str:
    return _iso(datetime.now(timezone.utc))


class UploadStatus(str, Enum):
    """Status of a statement upload."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CodingStatus(str, Enum):
    """Transaction filter by coding state."""

    ALL = "all"
    CODED = "coded"
    UNCODED = "uncoded"


@dataclass
class UploadRecord:
    """Record of an uploaded statement."""

    id: int
    user_id: str
    file_name: str
    file_type: str | None
    file_size: int
    file_hash: str | None
    status: UploadStatus
    transaction_count: int
    account_info: dict[str, Any]
    error_message: str | None
    created_at: str  # ISO timestamp
    completed_at: str | None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "UploadRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            file_name=row["file_name"],
            file_type=row["file_type"],
            file_size=row["file_size"] or 0,
            file_hash=row["file_hash"],
            status=UploadStatus(row["status"]),
            transaction_count=row["transaction_count"] or 0,
            account_info=json.loads(row["account_info"]) if row["account_info"] else {},
            error_message=row["error_message"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
        )


@dataclass
class TransactionRecord:
    """Record of a stored transaction."""

    id: int
    transaction_id: str
    user_id: str
    upload_id: int
    date: str
    description: str
    amount: Decimal
    is_income: bool
    currency: str
    category: str
    account_code: str | None
    coding_confidence: float
    coded_at: str | None
    coded_by: str | None
    notes: str | None
    created_at: str

    @property
    def is_coded(self) -> bool:
        return self.account_code is not None

    @property
    def direction(self) -> Direction:
        return Direction.INCOME if self.is_income else Direction.EXPENSE

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "TransactionRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            transaction_id=row["transaction_id"],
            user_id=row["user_id"],
            upload_id=row["upload_id"],
            date=row["transaction_date"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            is_income=bool(row["is_income"]),
            currency=row["currency"],
            category=row["category"],
            account_code=row["account_code"],
            coding_confidence=row["coding_confidence"] or 0.0,
            coded_at=row["coded_at"],
            coded_by=row["coded_by"],
            notes=row["notes"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "upload_id": self.upload_id,
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
            "coding_status": "coded" if self.is_coded else "pending",
        }


class LedgerStore:
    """
    SQLite-based store for uploads and their transactions.

    Provides persistent tracking of:
    - Statement uploads and their processing status
    - Extracted transactions per user and upload
    - Account coding of each transaction

    Thread-safe for single-writer scenarios.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str, run_migrations: bool = True):
        """
        Initialize ledger store.

        Args:
            db_path: Path to SQLite database file
            run_migrations: Whether to run pending migrations (default True)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        if run_migrations:
            self._run_migrations()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS uploads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    file_type TEXT,
                    file_size INTEGER DEFAULT 0,
                    file_hash TEXT,
                    status TEXT NOT NULL,
                    transaction_count INTEGER DEFAULT 0,
                    account_info TEXT,  -- JSON object
                    error_message TEXT,
                    created_at TEXT NOT NULL,
                    completed_at TEXT
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS transactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    transaction_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    upload_id INTEGER NOT NULL,
                    transaction_date TEXT NOT NULL,
                    description TEXT NOT NULL,
                    amount TEXT NOT NULL,  -- Decimal as string
                    is_income INTEGER NOT NULL,
                    currency TEXT NOT NULL,
                    category TEXT NOT NULL,
                    strategy TEXT,
                    extraction_confidence REAL,
                    created_at TEXT NOT NULL,
                    UNIQUE (upload_id, transaction_id),
                    FOREIGN KEY (upload_id) REFERENCES uploads(id)
                )
            """
            )

            conn.execute("CREATE INDEX IF NOT EXISTS idx_uploads_user ON uploads(user_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_uploads_status ON uploads(status)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions(user_id)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_transactions_upload ON transactions(upload_id)"
            )

            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,)
            )

    def _run_migrations(self) -> None:
        """Run pending database migrations."""
        from .migrations import MigrationRunner

        conn = self._get_connection()
        try:
            runner = MigrationRunner(conn)
            runner.run_pending()
        finally:
            conn.close()

    # Upload methods

    def create_upload(
        self,
        user_id: str,
        file_name: str,
        file_type: str | None = None,
        file_size: int = 0,
        file_hash: str | None = None,
    ) -> int:
        """Create an upload in PROCESSING state. Returns the upload ID."""
        now = _utc_now()

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO uploads
                (user_id, file_name, file_type, file_size, file_hash, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    user_id,
                    file_name,
                    file_type,
                    file_size,
                    file_hash,
                    UploadStatus.PROCESSING.value,
                    now,
                ),
            )
            return cursor.lastrowid or 0

    def complete_upload(
        self,
        upload_id: int,
        transaction_count: int,
        account_info: dict[str, Any] | None = None,
    ) -> None:
        """Mark upload as completed."""
        now = _utc_now()

        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE uploads
                SET status = ?, transaction_count = ?, account_info = ?, completed_at = ?
                WHERE id = ?
            """,
                (
                    UploadStatus.COMPLETED.value,
                    transaction_count,
                    json.dumps(account_info or {}),
                    now,
                    upload_id,
                ),
            )

    def fail_upload(self, upload_id: int, error_message: str) -> None:
        """Mark upload as failed."""
        now = _utc_now()

        with self._transaction() as conn:
            conn.execute(
                """
                UPDATE uploads
                SET status = ?, error_message = ?, completed_at = ?
                WHERE id = ?
            """,
                (UploadStatus.FAILED.value, error_message, now, upload_id),
            )

    def get_upload(self, upload_id: int) -> UploadRecord | None:
        """Get an upload by ID."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM uploads WHERE id = ?", (upload_id,)).fetchone()
            return UploadRecord.from_row(row) if row else None

    def get_uploads(self, user_id: str) -> list[UploadRecord]:
        """Get all uploads of a user, newest first."""
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM uploads WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
            return [UploadRecord.from_row(row) for row in rows]

    def fix_stuck_uploads(self, user_id: str, older_than_seconds: float = 0) -> int:
        """
        Fail uploads left in PROCESSING state.

        Only uploads created at least ``older_than_seconds`` ago are touched.

        Returns:
            Number of uploads fixed
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
        cutoff_str = _iso(cutoff)
        now = _utc_now()

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE uploads
                SET status = ?, error_message = ?, completed_at = ?
                WHERE user_id = ? AND status = ? AND created_at <= ?
            """,
                (
                    UploadStatus.FAILED.value,
                    "Processing did not finish",
                    now,
                    user_id,
                    UploadStatus.PROCESSING.value,
                    cutoff_str,
                ),
            )
            fixed = cursor.rowcount

        if fixed:
            logger.info(f"Fixed {fixed} stuck upload(s) for user {user_id}")
        return fixed

    # Transaction methods

    def insert_transactions(
        self,
        user_id: str,
        upload_id: int,
        transactions: Iterable[Transaction],
        coded_by: str | None = None,
    ) -> int:
        """
        Store the transactions of an upload.

        Transactions already stored for the upload (same transaction_id) are
        ignored.

        Returns:
            Number of rows inserted
        """
        now = _utc_now()
        inserted = 0

        with self._transaction() as conn:
            for tx in transactions:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO transactions
                    (transaction_id, user_id, upload_id, transaction_date, description, amount,
                     is_income, currency, category, strategy, extraction_confidence,
                     account_code, coding_confidence, coded_at, coded_by, notes, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        tx.transaction_id,
                        user_id,
                        upload_id,
                        tx.date,
                        tx.description,
                        str(tx.amount),
                        1 if tx.is_income else 0,
                        tx.currency,
                        tx.category,
                        tx.strategy,
                        tx.extraction_confidence,
                        tx.account_code,
                        tx.coding_confidence,
                        tx.coded_at,
                        coded_by if tx.is_coded else None,
                        tx.notes,
                        now,
                    ),
                )
                inserted += cursor.rowcount

        logger.debug(f"Stored {inserted} transaction(s) for upload {upload_id}")
        return inserted

    def get_transactions(
        self,
        user_id: str,
        upload_id: int | None = None,
        status: CodingStatus | str = CodingStatus.ALL,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[TransactionRecord]:
        """
        Get transactions of a user, newest first.

        Args:
            user_id: Owner of the transactions
            upload_id: Restrict to one upload
            status: "all", "coded" or "uncoded"
            date_from: Inclusive lower bound (YYYY-MM-DD)
            date_to: Inclusive upper bound (YYYY-MM-DD)
        """
        status = CodingStatus(status)
        query = "SELECT * FROM transactions WHERE user_id = ?"
        params: list[Any] = [user_id]

        if upload_id is not None:
            query += " AND upload_id = ?"
            params.append(upload_id)
        if status == CodingStatus.CODED:
            query += " AND account_code IS NOT NULL"
        elif status == CodingStatus.UNCODED:
            query += " AND account_code IS NULL"
        if date_from:
            query += " AND transaction_date >= ?"
            params.append(date_from)
        if date_to:
            query += " AND transaction_date <= ?"
            params.append(date_to)

        query += " ORDER BY transaction_date DESC, id"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            return [TransactionRecord.from_row(row) for row in rows]

    def get_transaction(self, user_id: str, transaction_row_id: int) -> TransactionRecord | None:
        """Get one transaction of a user by row ID."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_row_id, user_id),
            ).fetchone()
            return TransactionRecord.from_row(row) if row else None

    def update_coding(
        self,
        user_id: str,
        transaction_row_id: int,
        account_code: str,
        coding_confidence: float,
        notes: str | None = None,
        coded_by: str | None = None,
    ) -> bool:
        """
        Set the account code of a transaction.

        Returns:
            True if the transaction exists and belongs to the user
        """
        now = _utc_now()

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET account_code = ?, coding_confidence = ?, coded_at = ?, coded_by = ?, notes = ?
                WHERE id = ? AND user_id = ?
            """,
                (
                    account_code,
                    coding_confidence,
                    now,
                    coded_by,
                    notes,
                    transaction_row_id,
                    user_id,
                ),
            )
            return cursor.rowcount > 0

    def count_uncoded(self, user_id: str) -> int:
        """Number of transactions of a user without an account code."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE user_id = ? AND account_code IS NULL",
                (user_id,),
            ).fetchone()
            return row[0]

    def get_coding_summary(self, user_id: str) -> list[dict[str, Any]]:
        """Coded/uncoded counts per upload, newest upload first."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT
                    u.id AS upload_id,
                    u.file_name,
                    u.status,
                    u.created_at AS upload_date,
                    COUNT(t.id) AS total_transactions,
                    COUNT(t.account_code) AS coded_transactions
                FROM uploads u
                LEFT JOIN transactions t ON u.id = t.upload_id
                WHERE u.user_id = ?
                GROUP BY u.id
                ORDER BY u.created_at DESC, u.id DESC
            """,
                (user_id,),
            ).fetchall()

        summary = []
        for row in rows:
            total = row["total_transactions"]
            coded = row["coded_transactions"]
            summary.append(
                {
                    "upload_id": row["upload_id"],
                    "file_name": row["file_name"],
                    "status": row["status"],
                    "upload_date": row["upload_date"],
                    "total_transactions": total,
                    "coded_transactions": coded,
                    "uncoded_transactions": total - coded,
                    "coding_percentage": round(coded / total * 100, 2) if total else None,
                }
            )
        return summary
