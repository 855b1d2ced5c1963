"""
Last-resort money-pattern extraction.

Any line carrying a date token and at least one currency-prefixed amount
yields one transaction per amount. Direction comes purely from where the
amount sits in the line, so everything this strategy emits is flagged with
the lowest confidence in the chain.
"""

import logging

from ..schemas.statement import CandidateTransaction, HeaderInfo, RawLine
from .base import ExtractionStrategy, direction_from_position, fallback_description
from .patterns import CURRENCY_MONEY_RE, CURRENCY_SYMBOLS, find_date, parse_amount

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 8


class MoneyPatternExtractor(ExtractionStrategy):
    def __init__(self, currency: str = "GBP"):
        self.currency = currency

    @property
    def name(self) -> str:
        return "money_pattern"

    @property
    def priority(self) -> int:
        return 10

    @property
    def confidence(self) -> float:
        return 0.2

    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        transactions = []

        for line in lines:
            text = line.text
            if len(text) < MIN_LINE_LENGTH:
                continue

            date_match = find_date(text)
            if not date_match:
                continue

            matches = list(CURRENCY_MONEY_RE.finditer(text))
            if not matches:
                continue

            logger.debug(f"Found money pattern in line {line.index}: {text!r}")
            description = text[date_match.end() : matches[0].start()].strip()

            for match in matches:
                amount = parse_amount(match.group(2))
                if amount == 0:
                    continue
                direction = direction_from_position(text, match.start())
                tx = self._candidate(
                    date_match.group(1),
                    description or fallback_description(direction),
                    amount,
                    direction,
                )
                tx.currency = CURRENCY_SYMBOLS.get(match.group(1), self.currency)
                transactions.append(tx)

        return transactions
