"""
CSV statement extraction.

Bank CSV exports come in two shapes:
- Separate "Paid in" / "Paid out" (or credit/debit) columns
- One signed "Amount" column, negative for money out

The header row is found and mapped with the same column vocabulary as the
text header detector. Rows without a date or with a zero amount are skipped.
"""

import csv
import io
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..schemas.statement import CandidateTransaction, Direction, RawLine
from .base import fallback_description
from .categorize import categorize_transaction
from .patterns import ISO_DATE_RE, find_date, parse_amount
from .segment import map_header_columns

logger = logging.getLogger(__name__)

AMOUNT_TERMS = ("amount", "value")
PAYEE_TERMS = ("counter party", "counterparty", "payee", "merchant", "name")


@dataclass
class CSVColumns:
    date_index: int = -1
    description_index: int = -1
    payee_index: int = -1
    money_in_index: int = -1
    money_out_index: int = -1
    amount_index: int = -1

    @property
    def usable(self) -> bool:
        has_money = self.amount_index != -1 or self.money_in_index != -1 or self.money_out_index != -1
        return self.date_index != -1 and has_money


def map_csv_header(row: list[str]) -> CSVColumns:
    """Map a CSV header row to column roles."""
    header = map_header_columns(RawLine(index=0, text=",".join(row)), [c.strip() for c in row])
    columns = CSVColumns(
        date_index=header.date_index,
        description_index=header.description_index,
        money_in_index=header.money_in_index,
        money_out_index=header.money_out_index,
    )

    reserved = {
        header.date_index,
        header.description_index,
        header.money_in_index,
        header.money_out_index,
        header.balance_index,
    }
    for index, col in enumerate(row):
        if index in reserved:
            continue
        col_lower = col.strip().lower()
        if columns.amount_index == -1 and any(term in col_lower for term in AMOUNT_TERMS):
            columns.amount_index = index
        elif columns.payee_index == -1 and any(term in col_lower for term in PAYEE_TERMS):
            columns.payee_index = index

    return columns


def _cell(row: list[str], index: int) -> str:
    if 0 <= index < len(row):
        return row[index].strip()
    return ""


class CSVExtractor:
    """Extracts candidate transactions from CSV statement text."""

    name = "csv"
    confidence = 0.9

    def __init__(self, currency: str = "GBP"):
        self.currency = currency

    def extract(self, text: str) -> list[CandidateTransaction]:
        rows = list(csv.reader(io.StringIO(text)))

        columns: Optional[CSVColumns] = None
        header_row = -1
        for index, row in enumerate(rows):
            if not any(cell.strip() for cell in row):
                continue
            mapped = map_csv_header(row)
            if mapped.usable:
                columns = mapped
                header_row = index
                break

        if columns is None:
            logger.info("No usable CSV header row found")
            return []

        logger.debug(f"CSV header at row {header_row}: {rows[header_row]}")

        transactions = []
        for row in rows[header_row + 1 :]:
            tx = self._extract_row(row, columns)
            if tx:
                transactions.append(tx)
        return transactions

    def _extract_row(self, row: list[str], columns: CSVColumns) -> Optional[CandidateTransaction]:
        date_cell = _cell(row, columns.date_index)
        date_match = find_date(date_cell) or ISO_DATE_RE.search(date_cell)
        if not date_match:
            return None

        direction, amount = self._read_money(row, columns)
        if direction is None:
            return None

        description = _cell(row, columns.payee_index) or _cell(row, columns.description_index)
        description = description or fallback_description(direction)

        return CandidateTransaction(
            date=date_match.group(1),
            description=description,
            amount=abs(amount),
            direction=direction,
            currency=self.currency,
            category=categorize_transaction(description),
            strategy=self.name,
            confidence=self.confidence,
        )

    def _read_money(
        self, row: list[str], columns: CSVColumns
    ) -> tuple[Optional[Direction], Decimal]:
        if columns.money_in_index != -1:
            money_in = parse_amount(_cell(row, columns.money_in_index))
            if money_in != 0:
                return Direction.INCOME, money_in

        if columns.money_out_index != -1:
            money_out = parse_amount(_cell(row, columns.money_out_index))
            if money_out != 0:
                return Direction.EXPENSE, money_out

        if columns.amount_index != -1:
            amount = parse_amount(_cell(row, columns.amount_index))
            if amount > 0:
                return Direction.INCOME, amount
            if amount < 0:
                return Direction.EXPENSE, amount

        return None, Decimal("0")
