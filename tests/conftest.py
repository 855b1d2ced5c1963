"""Test fixtures and utilities."""

from pathlib import Path

import pytest

from statement_ledger.accounts import ChartOfAccounts
from statement_ledger.coding import AccountCodingService
from statement_ledger.config import Config
from statement_ledger.state_store import LedgerStore

from fixtures import (
    SAMPLE_COLUMN_STATEMENT,
    SAMPLE_CSV_STATEMENT,
    SAMPLE_MONEY_PATTERN_TEXT,
    SAMPLE_SECTION_STATEMENT,
    SAMPLE_SIGNED_CSV_STATEMENT,
    SAMPLE_TABLE_STATEMENT,
)


@pytest.fixture
def column_statement() -> str:
    """Statement text with a detectable column header."""
    return SAMPLE_COLUMN_STATEMENT


@pytest.fixture
def section_statement() -> str:
    """Statement text with a transaction section but no column header."""
    return SAMPLE_SECTION_STATEMENT


@pytest.fixture
def table_statement() -> str:
    """Statement text with an Inflow/Outflow table."""
    return SAMPLE_TABLE_STATEMENT


@pytest.fixture
def money_pattern_text() -> str:
    """Text with currency-prefixed amounts only."""
    return SAMPLE_MONEY_PATTERN_TEXT


@pytest.fixture
def csv_statement() -> str:
    return SAMPLE_CSV_STATEMENT


@pytest.fixture
def signed_csv_statement() -> str:
    return SAMPLE_SIGNED_CSV_STATEMENT


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_ledger.db"


@pytest.fixture
def store(temp_db) -> LedgerStore:
    """Fresh ledger store."""
    return LedgerStore(temp_db)


@pytest.fixture
def chart() -> ChartOfAccounts:
    """Built-in UK chart of accounts."""
    return ChartOfAccounts.default()


@pytest.fixture
def coder(chart) -> AccountCodingService:
    return AccountCodingService(chart)


@pytest.fixture
def config(temp_db) -> Config:
    """Default configuration pointing at the temporary database."""
    return Config(ledger_db_path=temp_db)
