"""
Migration 001: Add account coding columns to the transactions table.

Coding happens after import (auto-coding on ingest, bulk re-coding, manual
coding), so the coding state lives in its own columns with indexes for the
coded/uncoded filters and the trial balance grouping.
"""

import sqlite3

VERSION = 1
NAME = "transaction_coding"

CODING_COLUMNS = (
    ("account_code", "TEXT"),
    ("coding_confidence", "REAL DEFAULT 0"),
    ("coded_at", "TEXT"),
    ("coded_by", "TEXT"),
    ("notes", "TEXT"),
)


def upgrade(conn: sqlite3.Connection) -> None:
    """Add coding columns and indexes."""
    cursor = conn.execute("PRAGMA table_info(transactions)")
    existing = {row[1] for row in cursor.fetchall()}

    for column, ddl in CODING_COLUMNS:
        if column not in existing:
            conn.execute(f"ALTER TABLE transactions ADD COLUMN {column} {ddl}")

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_account_code ON transactions(account_code)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_user_coded ON transactions(user_id, account_code)"
    )
