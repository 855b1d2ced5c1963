"""
Section-scoped extraction.

Used when no column header was accepted. Lines that announce a transaction
section ("Transactions", "Statement activity", "Date  In  Out") open a
section that runs until the next blank line of the source text. Inside it,
every dated line is scanned for money amounts; each amount becomes one
transaction whose direction is guessed from its position in the line.
"""

import logging
import re

from ..schemas.statement import CandidateTransaction, HeaderInfo, RawLine
from .base import ExtractionStrategy, direction_from_position, fallback_description
from .patterns import MONEY_RE, find_date, parse_amount

logger = logging.getLogger(__name__)

SECTION_TERMS = ("transaction", "statement", "activity")
IN_OUT_RE = re.compile(r"\b(in|out)\b")


def is_section_header(text: str) -> bool:
    """Section-opening vocabulary on a line that is not itself a dated row."""
    if find_date(text):
        return False
    lower = text.lower()
    if any(term in lower for term in SECTION_TERMS):
        return True
    return "date" in lower and bool(IN_OUT_RE.search(lower))


class SectionExtractor(ExtractionStrategy):
    def __init__(self, currency: str = "GBP"):
        self.currency = currency

    @property
    def name(self) -> str:
        return "section"

    @property
    def priority(self) -> int:
        return 80

    @property
    def confidence(self) -> float:
        return 0.5

    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        transactions: list[CandidateTransaction] = []
        in_section = False
        previous_index = None

        for line in lines:
            # A gap in source indexes means one or more blank lines were dropped
            if in_section and previous_index is not None and line.index - previous_index > 1:
                logger.debug(f"Transaction section ended before line {line.index}")
                in_section = False
            previous_index = line.index

            if is_section_header(line.text):
                logger.debug(f"Potential transaction section at line {line.index}: {line.text!r}")
                in_section = True
                continue

            if in_section:
                transactions.extend(self._extract_line(line))

        return transactions

    def _extract_line(self, line: RawLine) -> list[CandidateTransaction]:
        text = line.text
        date_match = find_date(text)
        if not date_match:
            return []

        matches = list(MONEY_RE.finditer(text, date_match.end()))
        if not matches:
            return []

        description = text[date_match.end() : matches[0].start()].strip()
        transactions = []
        for match in matches:
            amount = parse_amount(match.group(1))
            if amount == 0:
                continue
            direction = direction_from_position(text, match.start())
            transactions.append(
                self._candidate(
                    date_match.group(1),
                    description or fallback_description(direction),
                    amount,
                    direction,
                )
            )
        return transactions
