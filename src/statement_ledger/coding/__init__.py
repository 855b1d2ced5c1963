"""
Account coding (auto-classification).

Provides:
- AccountCodingService: deterministic auto-coding and ranked suggestions
- Ordered income/expense rule tables
- BatchCodingService: auto-code and bulk manual coding with per-item errors
"""

from .batch import BatchCodingResult, BatchCodingService
from .rules import EXPENSE_RULES, INCOME_RULES, CodingRule, match_rule
from .service import AccountCodingService, CodingDecision, InvalidAccountCodeError

__all__ = [
    "AccountCodingService",
    "CodingDecision",
    "InvalidAccountCodeError",
    "BatchCodingService",
    "BatchCodingResult",
    "CodingRule",
    "INCOME_RULES",
    "EXPENSE_RULES",
    "match_rule",
]
