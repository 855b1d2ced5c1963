"""
Table reconstruction.

Re-runs header discovery with the stricter table vocabulary (date,
description and a paired money vocabulary) and reads rows like the column
strategy, stopping at the first totals/balance/page-footer line.
"""

import logging

from ..schemas.statement import CandidateTransaction, HeaderInfo, RawLine
from .column_extractor import ColumnExtractor
from .segment import detect_table_header

logger = logging.getLogger(__name__)


class TableExtractor(ColumnExtractor):
    stop_terms = ("total", "balance", "page")

    def __init__(self, currency: str = "GBP", min_length: int = 10, min_columns: int = 3):
        super().__init__(currency=currency)
        self.min_length = min_length
        self.min_columns = min_columns

    @property
    def name(self) -> str:
        return "table"

    @property
    def priority(self) -> int:
        return 60

    @property
    def confidence(self) -> float:
        return 0.8

    def can_extract(self, lines: list[RawLine], header: HeaderInfo) -> bool:
        return bool(lines)

    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        table_header = detect_table_header(lines, self.min_length, self.min_columns)
        if not table_header.found:
            logger.debug("No transaction table header found")
            return []
        return self._extract_rows(lines, table_header)
