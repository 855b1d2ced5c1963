"""
Date-pattern extraction (opt-in).

Takes any dated line with money amounts. Two amounts are read as an OUT
column followed by an IN column; a single amount takes its direction from
description keywords. The OUT-then-IN assumption is a guess about the column
order and is wrong for statements that print IN first, which is why this
strategy is off by default and carries a low confidence.
"""

from ..schemas.statement import CandidateTransaction, Direction, HeaderInfo, RawLine
from .base import ExtractionStrategy, fallback_description
from .patterns import MONEY_RE, find_date, parse_amount

MIN_LINE_LENGTH = 8

INCOME_KEYWORDS = (
    "salary",
    "wage",
    "deposit",
    "interest",
    "credit",
    "refund",
    "transfer in",
    "payment received",
    "dividend",
)


def direction_from_description(description: str | None) -> Direction:
    """Income when the description carries an income keyword, expense otherwise."""
    if not description:
        return Direction.EXPENSE

    desc = description.lower()
    if any(keyword in desc for keyword in INCOME_KEYWORDS):
        return Direction.INCOME
    return Direction.EXPENSE


class DatePatternExtractor(ExtractionStrategy):
    def __init__(self, currency: str = "GBP"):
        self.currency = currency

    @property
    def name(self) -> str:
        return "date_pattern"

    @property
    def priority(self) -> int:
        return 20

    @property
    def confidence(self) -> float:
        return 0.3

    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        transactions = []

        for line in lines:
            text = line.text
            if len(text) < MIN_LINE_LENGTH:
                continue

            date_match = find_date(text)
            if not date_match:
                continue

            matches = list(MONEY_RE.finditer(text, date_match.end()))
            if not matches:
                continue

            date = date_match.group(1)
            description = text[date_match.end() : matches[0].start()].strip()

            if len(matches) >= 2:
                pairs = (
                    (parse_amount(matches[0].group(1)), Direction.EXPENSE),
                    (parse_amount(matches[1].group(1)), Direction.INCOME),
                )
                for amount, direction in pairs:
                    if amount > 0:
                        transactions.append(
                            self._candidate(
                                date, description or fallback_description(direction), amount, direction
                            )
                        )
            else:
                amount = parse_amount(matches[0].group(1))
                if amount == 0:
                    continue
                direction = direction_from_description(description)
                transactions.append(
                    self._candidate(
                        date, description or fallback_description(direction), amount, direction
                    )
                )

        return transactions
