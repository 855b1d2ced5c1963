"""
Extractor router - runs the strategy fallback chain.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import ExtractionConfig
from ..schemas.statement import CandidateTransaction, HeaderInfo, RawLine
from .base import ExtractionStrategy
from .column_extractor import ColumnExtractor
from .date_pattern_extractor import DatePatternExtractor
from .money_pattern_extractor import MoneyPatternExtractor
from .section_extractor import SectionExtractor
from .segment import detect_header
from .table_extractor import TableExtractor

logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    """Outcome of one run of the fallback chain."""

    header: HeaderInfo
    transactions: list[CandidateTransaction] = field(default_factory=list)
    strategy: Optional[str] = None  # None when every strategy came back empty
    attempted: list[str] = field(default_factory=list)


class ExtractorRouter:
    """
    Routes extraction through the strategy chain.

    Tries strategies in priority order and stops at the first non-empty result:
    1. Structured columns under a detected header - highest confidence
    2. Section-scoped dated lines
    3. Table reconstruction with the stricter header vocabulary
    4. Money patterns anywhere (position-guessed direction) - lowest confidence
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        strategies: Optional[list[ExtractionStrategy]] = None,
    ):
        self.config = config or ExtractionConfig()
        currency = self.config.default_currency

        if strategies is None:
            strategies = [
                ColumnExtractor(currency=currency),
                SectionExtractor(currency=currency),
                TableExtractor(
                    currency=currency,
                    min_length=self.config.min_line_length,
                    min_columns=self.config.min_header_columns,
                ),
                MoneyPatternExtractor(currency=currency),
            ]
            if self.config.enable_date_pattern_strategy:
                strategies.append(DatePatternExtractor(currency=currency))

        self.strategies: list[ExtractionStrategy] = sorted(strategies, key=lambda s: -s.priority)

    def detect_header(self, lines: list[RawLine]) -> HeaderInfo:
        return detect_header(
            lines,
            min_length=self.config.min_line_length,
            min_columns=self.config.min_header_columns,
        )

    def extract(self, lines: list[RawLine], header: Optional[HeaderInfo] = None) -> ChainResult:
        """
        Run the chain over segmented lines.

        Args:
            lines: Segmented statement lines
            header: Pre-computed header; detected here when omitted

        Returns:
            ChainResult naming the strategy that produced the transactions
        """
        if header is None:
            header = self.detect_header(lines)

        result = ChainResult(header=header)

        for strategy in self.strategies:
            if not strategy.can_extract(lines, header):
                logger.debug(f"Skipping strategy {strategy.name}")
                continue

            result.attempted.append(strategy.name)
            transactions = strategy.extract(lines, header)
            logger.info(f"Strategy {strategy.name}: {len(transactions)} candidate transaction(s)")

            if transactions:
                result.transactions = transactions
                result.strategy = strategy.name
                break

        return result
