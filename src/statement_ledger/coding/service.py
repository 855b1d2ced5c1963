"""
Account coding service.

Assigns chart-of-accounts codes to transactions from their description and
direction. Classification is a pure function of (description, is_income) and
the injected chart: the same inputs always produce the same code, which keeps
re-coding idempotent.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from ..accounts import Account, AccountType, ChartOfAccounts
from ..config import CodingConfig
from ..schemas.statement import Transaction
from .rules import match_rule

logger = logging.getLogger(__name__)

# Confidence recorded for codes chosen by a person
MANUAL_CONFIDENCE = 1.0


class InvalidAccountCodeError(Exception):
    """Raised when an account code does not exist in the chart of accounts."""

    def __init__(self, code: Optional[str]):
        self.code = code
        super().__init__("Invalid account code")


@dataclass(frozen=True)
class CodingDecision:
    """Outcome of classifying one transaction."""

    account_code: Optional[str]
    confidence: float
    reason: str
    rule: Optional[str] = None  # label of the matched rule, None for defaults


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class AccountCodingService:
    """
    Classifier over an injected, read-only chart of accounts.

    Example:
        coder = AccountCodingService(ChartOfAccounts.default())
        coder.auto_code_transaction("Salary payment", Decimal("2500"), True)  # "4000"
    """

    def __init__(self, chart: ChartOfAccounts, config: Optional[CodingConfig] = None):
        self.chart = chart
        self.config = config or CodingConfig()

    # ------------------------------------------------------------------
    # Chart lookups
    # ------------------------------------------------------------------

    def get_account(self, code: Optional[str]) -> Optional[Account]:
        return self.chart.get(code)

    def get_all_accounts(self) -> list[Account]:
        """All accounts sorted by code."""
        return self.chart.all()

    def get_accounts_by_type(self, account_type: Union[AccountType, str]) -> list[Account]:
        return self.chart.by_type(AccountType(account_type))

    def is_valid_code(self, code: Optional[str]) -> bool:
        return self.chart.get(code) is not None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def auto_code_transaction(
        self,
        description: Optional[str],
        amount: Union[Decimal, float, None],
        is_income: bool,
    ) -> str:
        """
        Account code for a transaction.

        The first matching rule of the income or expense table wins; with no
        match the configured default (Sales for income, the catch-all
        expense account otherwise) is returned. ``amount`` does not take part
        in the current rule tables.
        """
        rule = match_rule(description, is_income)
        if rule:
            return rule.code
        return self.config.default_income_code if is_income else self.config.default_expense_code

    def classify(
        self,
        description: Optional[str],
        amount: Union[Decimal, float, None],
        is_income: bool,
    ) -> CodingDecision:
        """
        Auto-code with confidence and provenance.

        A code that is missing from the injected chart (possible with a
        custom chart) is never assigned: the decision carries ``None``.
        """
        rule = match_rule(description, is_income)
        if rule:
            code, confidence, reason = rule.code, self.config.primary_confidence, "Auto-matched from description"
        else:
            code = self.auto_code_transaction(description, amount, is_income)
            confidence, reason = self.config.fallback_confidence, "Default account"

        if not self.is_valid_code(code):
            logger.warning(f"Auto-coded account {code} is not in the chart of accounts")
            return CodingDecision(account_code=None, confidence=0.0, reason="Account not in chart")

        return CodingDecision(
            account_code=code,
            confidence=confidence,
            reason=reason,
            rule=rule.label if rule else None,
        )

    def get_suggested_codes(
        self,
        description: Optional[str],
        amount: Union[Decimal, float, None],
        is_income: bool,
    ) -> list[dict]:
        """
        Ranked account suggestions.

        The auto-coded account comes first at high confidence, followed by
        other accounts of the same broad type (all Revenue accounts for
        income, the first expense accounts of the chart otherwise) at low
        confidence. At most ``max_suggestions`` entries.
        """
        suggestions = []
        primary_code = self.auto_code_transaction(description, amount, is_income)
        primary = self.get_account(primary_code)

        if primary:
            suggestions.append(
                {
                    "code": primary.code,
                    "name": primary.name,
                    "confidence": self.config.primary_confidence,
                    "reason": "Auto-matched from description",
                }
            )

        if is_income:
            alternatives = self.get_accounts_by_type(AccountType.REVENUE)
            reason = "Alternative revenue account"
        else:
            alternatives = self.get_accounts_by_type(AccountType.EXPENSES)[: self.config.max_suggestions]
            reason = "Alternative expense account"

        for account in alternatives:
            if account.code == primary_code:
                continue
            suggestions.append(
                {
                    "code": account.code,
                    "name": account.name,
                    "confidence": self.config.alternative_confidence,
                    "reason": reason,
                }
            )

        return suggestions[: self.config.max_suggestions]

    # ------------------------------------------------------------------
    # Applying codes to transactions
    # ------------------------------------------------------------------

    def auto_code(self, transaction: Transaction, coded_at: Optional[str] = None) -> Transaction:
        """Copy of ``transaction`` carrying its auto-coded account."""
        decision = self.classify(transaction.description, transaction.amount, transaction.is_income)
        if decision.account_code is None:
            return replace(transaction, account_code=None, coding_confidence=0.0, coded_at=None)

        return replace(
            transaction,
            account_code=decision.account_code,
            coding_confidence=decision.confidence,
            coded_at=coded_at or _utc_now(),
        )

    def code_transaction(
        self,
        transaction: Transaction,
        account_code: str,
        notes: Optional[str] = None,
    ) -> Transaction:
        """
        Manually assign an account code.

        Raises:
            InvalidAccountCodeError: If the code is not in the chart
        """
        if not self.is_valid_code(account_code):
            raise InvalidAccountCodeError(account_code)

        return replace(
            transaction,
            account_code=account_code,
            coding_confidence=MANUAL_CONFIDENCE,
            coded_at=_utc_now(),
            notes=notes if notes is not None else transaction.notes,
        )
