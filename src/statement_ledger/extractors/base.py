"""
Base extraction strategy interface and shared helpers.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from ..schemas.statement import CandidateTransaction, Direction, HeaderInfo, RawLine
from .categorize import categorize_transaction


class ExtractionStrategy(ABC):
    """
    Base class for all statement extraction strategies.

    Each strategy is a pure function of the segmented lines (and the detected
    header, which most of them ignore):
    - Structured columns under a detected header
    - Section-scoped date lines
    - Table reconstruction with a stricter header
    - Money patterns anywhere in the text
    """

    currency: str = "GBP"

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name for logging and provenance."""
        pass

    @property
    @abstractmethod
    def priority(self) -> int:
        """
        Priority for strategy selection.
        Higher = more trusted, tried first.
        """
        pass

    @property
    @abstractmethod
    def confidence(self) -> float:
        """Confidence attached to every transaction this strategy emits."""
        pass

    def can_extract(self, lines: list[RawLine], header: HeaderInfo) -> bool:
        """
        Check if this strategy should be attempted.

        Args:
            lines: Segmented statement lines
            header: Result of header detection (may be not-found)
        """
        return bool(lines)

    @abstractmethod
    def extract(self, lines: list[RawLine], header: HeaderInfo) -> list[CandidateTransaction]:
        """
        Extract candidate transactions.

        Returns:
            Candidate transactions in document order (possibly empty)
        """
        pass

    def _candidate(
        self,
        date: str,
        description: str,
        amount: Decimal,
        direction: Direction,
    ) -> CandidateTransaction:
        return CandidateTransaction(
            date=date,
            description=description,
            amount=abs(amount),
            direction=direction,
            currency=self.currency,
            category=categorize_transaction(description),
            strategy=self.name,
            confidence=self.confidence,
        )


def direction_from_position(line: str, position: int) -> Direction:
    """
    Guess the direction of an amount from where it sits in the line.

    Right half of the line is read as money in, left half as money out.
    Imprecise; only used by the low-confidence strategies.
    """
    if position > len(line) / 2:
        return Direction.INCOME
    return Direction.EXPENSE


def fallback_description(direction: Direction) -> str:
    if direction == Direction.INCOME:
        return "Income transaction"
    return "Expense transaction"
