"""
Structured-column extraction under a detected header.

This is the most trusted strategy: a header row told us which column holds
the date, the description and the money-in/money-out values, so each data
row maps directly onto a transaction.
"""

import logging
from decimal import Decimal
from typing import Optional

from ..schemas.statement import CandidateTransaction, Direction, HeaderInfo, RawLine
from .base import ExtractionStrategy, fallback_description
from .patterns import find_date, is_numeric_column, parse_amount
from .segment import align_row

logger = logging.getLogger(__name__)


class ColumnExtractor(ExtractionStrategy):
    """
    Reads rows below the header column by column.

    Money-in is checked first; money-out is read only when money-in is zero,
    so a row never produces two transactions.
    """

    # Lines containing any of these end the table (none for this strategy)
    stop_terms: tuple[str, ...] = ()

    def __init__(self, currency: str = "GBP"):
        self.currency = currency

    @property
    def name(self) -> str:
        return "column"

    @property
    def priority(self) -> int:
        return 100

    @property
    def confidence(self) -> float:
        return 0.9

    def can_extract(self, lines: list[RawLine], header: HeaderInfo) -> bool:
        return header.found

    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        if not header.found:
            return []
        return self._extract_rows(lines, header)

    def _extract_rows(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        transactions = []

        for line in lines:
            if line.index <= header.line_index:
                continue

            lower = line.text.lower()
            if self.stop_terms and any(term in lower for term in self.stop_terms):
                logger.debug(f"End of table at line {line.index}: {line.text!r}")
                break

            tx = self._extract_row(line, header)
            if tx:
                transactions.append(tx)

        logger.debug(f"{self.name}: {len(transactions)} rows extracted")
        return transactions

    def _extract_row(self, line: RawLine, header: HeaderInfo) -> Optional[CandidateTransaction]:
        row = align_row(header, line.text)

        date_match = find_date(row.get(header.date_index, ""))
        if not date_match:
            return None

        direction, amount = self._read_money(row, header)
        if direction is None:
            return None

        description = self._description(row, header) or fallback_description(direction)
        return self._candidate(date_match.group(1), description, amount, direction)

    def _read_money(
        self, row: dict[int, str], header: HeaderInfo
    ) -> tuple[Optional[Direction], Decimal]:
        if header.money_in_index != -1:
            money_in = parse_amount(row.get(header.money_in_index))
            if money_in != 0:
                return Direction.INCOME, money_in

        if header.money_out_index != -1:
            money_out = parse_amount(row.get(header.money_out_index))
            if money_out != 0:
                return Direction.EXPENSE, money_out

        return None, Decimal("0")

    def _description(self, row: dict[int, str], header: HeaderInfo) -> str:
        if header.description_index != -1:
            return row.get(header.description_index, "").strip()

        # No description column: longest non-numeric, non-date column
        reserved = {
            header.date_index,
            header.money_in_index,
            header.money_out_index,
            header.balance_index,
        }
        candidates = [
            value
            for index, value in row.items()
            if index not in reserved and not is_numeric_column(value) and not find_date(value)
        ]
        return max(candidates, key=len, default="")
