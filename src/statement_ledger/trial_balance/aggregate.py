"""
Trial balance aggregation (CRITICAL).

Pure functions from coded transactions + chart of accounts to per-account
rows and their roll-ups. Nothing here is persisted; rows are recomputed on
demand.

Debit/credit assignment per transaction:

    account DR  + expense -> debit       account CR  + income  -> debit
    account DR  + income  -> credit      account CR  + expense -> credit

``net_balance`` is debit - credit. ``trial_balance_amount`` follows the UK
display convention used for roll-ups: expenses positive, income negative,
whatever the account's normal balance.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from ..accounts import BALANCE_SHEET, PROFIT_AND_LOSS, Account, ChartOfAccounts, NormalBalance

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TOTAL_SECTION = "TOTAL"
OTHER_CATEGORY = "Other"
SECTION_ORDER = (PROFIT_AND_LOSS, BALANCE_SHEET)


class CodedTransaction(Protocol):
    account_code: Optional[str]
    amount: Decimal
    is_income: bool
    date: str


def debit_credit(normal_balance: NormalBalance, is_income: bool, amount: Decimal) -> tuple[Decimal, Decimal]:
    """(debit, credit) contribution of one transaction to an account."""
    magnitude = abs(amount)
    is_debit = (normal_balance == NormalBalance.DR and not is_income) or (
        normal_balance == NormalBalance.CR and is_income
    )
    return (magnitude, ZERO) if is_debit else (ZERO, magnitude)


def trial_balance_amount(is_income: bool, amount: Decimal) -> Decimal:
    """
    Signed display amount of one transaction.

    Income is negative and expense positive on both DR and CR accounts.
    """
    magnitude = abs(amount)
    return -magnitude if is_income else magnitude


@dataclass
class TrialBalanceRow:
    """Per-account aggregate."""

    account: Account
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    trial_balance_amount: Decimal = ZERO
    transaction_count: int = 0
    earliest_transaction: Optional[str] = None
    latest_transaction: Optional[str] = None

    @property
    def code(self) -> str:
        return self.account.code

    @property
    def section(self) -> str:
        return self.account.section

    @property
    def category(self) -> str:
        return self.account.category or OTHER_CATEGORY

    @property
    def net_balance(self) -> Decimal:
        return self.debit_amount - self.credit_amount

    def add(self, amount: Decimal, is_income: bool, date: Optional[str] = None) -> None:
        debit, credit = debit_credit(self.account.normal_balance, is_income, amount)
        self.debit_amount += debit
        self.credit_amount += credit
        self.trial_balance_amount += trial_balance_amount(is_income, amount)
        self.transaction_count += 1

        if date:
            if self.earliest_transaction is None or date < self.earliest_transaction:
                self.earliest_transaction = date
            if self.latest_transaction is None or date > self.latest_transaction:
                self.latest_transaction = date

    def to_dict(self) -> dict:
        return {
            "code": self.account.code,
            "name": self.account.name,
            "account_type": self.account.account_type.value,
            "section": self.account.section,
            "category": self.account.category,
            "subcategory": self.account.subcategory,
            "normal_balance": self.account.normal_balance.value,
            "sort_order": self.account.sort_order,
            "debit_amount": self.debit_amount,
            "credit_amount": self.credit_amount,
            "net_balance": self.net_balance,
            "trial_balance_amount": self.trial_balance_amount,
            "transaction_count": self.transaction_count,
            "earliest_transaction": self.earliest_transaction,
            "latest_transaction": self.latest_transaction,
        }


def aggregate_transactions(
    transactions: Iterable[CodedTransaction],
    chart: ChartOfAccounts,
    include_zero_balances: bool = False,
) -> list[TrialBalanceRow]:
    """
    Group coded transactions by account.

    Uncoded transactions are skipped. Codes unknown to the chart are skipped
    with a warning. Without ``include_zero_balances`` rows whose trial
    balance amount is zero are dropped; with it, every chart account is
    returned.

    Returns:
        Rows in display order (sort_order, code)
    """
    rows: dict[str, TrialBalanceRow] = {}
    if include_zero_balances:
        rows = {account.code: TrialBalanceRow(account=account) for account in chart.all()}

    for tx in transactions:
        if tx.account_code is None:
            continue

        account = chart.get(tx.account_code)
        if account is None:
            logger.warning(f"Transaction coded to unknown account {tx.account_code}; skipped")
            continue

        row = rows.get(account.code)
        if row is None:
            row = rows[account.code] = TrialBalanceRow(account=account)
        row.add(tx.amount, tx.is_income, tx.date)

    result = sorted(rows.values(), key=lambda r: (r.account.sort_order, r.account.code))
    if not include_zero_balances:
        result = [r for r in result if r.trial_balance_amount != 0]
    return result


def structure_trial_balance(rows: Iterable[TrialBalanceRow]) -> dict[str, dict[str, dict]]:
    """
    Group rows by section and category for display.

    Shape: ``{section: {category: {"accounts": [...], "totals": {...}}}}``
    with both standard sections always present.
    """
    structured: dict[str, dict[str, dict]] = {section: {} for section in SECTION_ORDER}

    for row in rows:
        categories = structured.setdefault(row.section, {})
        group = categories.get(row.category)
        if group is None:
            group = categories[row.category] = {
                "accounts": [],
                "totals": {"debits": ZERO, "credits": ZERO, "balance": ZERO},
            }

        group["accounts"].append(
            {
                "code": row.code,
                "name": row.account.name,
                "subcategory": row.account.subcategory,
                "debit_amount": row.debit_amount,
                "credit_amount": row.credit_amount,
                "trial_balance_amount": row.trial_balance_amount,
                "transaction_count": row.transaction_count,
                "normal_balance": row.account.normal_balance.value,
            }
        )
        group["totals"]["debits"] += row.debit_amount
        group["totals"]["credits"] += row.credit_amount
        group["totals"]["balance"] += row.trial_balance_amount

    return structured


def calculate_totals(rows: list[TrialBalanceRow]) -> dict:
    """Overall totals of a set of rows."""
    return {
        "total_debits": sum((r.debit_amount for r in rows), ZERO),
        "total_credits": sum((r.credit_amount for r in rows), ZERO),
        "net_balance": sum((r.trial_balance_amount for r in rows), ZERO),
        "account_count": len(rows),
        "transaction_count": sum(r.transaction_count for r in rows),
    }


def _section_row(section: str, rows: list[TrialBalanceRow]) -> dict:
    return {
        "section": section,
        "section_debits": sum((r.debit_amount for r in rows), ZERO),
        "section_credits": sum((r.credit_amount for r in rows), ZERO),
        "section_balance": sum((r.trial_balance_amount for r in rows), ZERO),
        "accounts_with_balances": len({r.code for r in rows}),
        "total_transactions": sum(r.transaction_count for r in rows),
    }


def section_totals(rows: list[TrialBalanceRow]) -> list[dict]:
    """
    Per-section totals followed by a TOTAL row.

    Only rows with transactions take part. The TOTAL row is always present
    (zeros for an empty ledger).
    """
    active = [r for r in rows if r.transaction_count > 0]
    sections = sorted(
        {r.section for r in active},
        key=lambda s: SECTION_ORDER.index(s) if s in SECTION_ORDER else len(SECTION_ORDER),
    )

    totals = [_section_row(section, [r for r in active if r.section == section]) for section in sections]
    totals.append(_section_row(TOTAL_SECTION, active))
    return totals


def summarize_by_category(rows: list[TrialBalanceRow]) -> list[dict]:
    """Roll-up per (section, category, subcategory), P&L first then by sort order."""
    groups: dict[tuple[str, str, Optional[str]], list[TrialBalanceRow]] = {}
    for row in rows:
        if row.transaction_count == 0:
            continue
        key = (row.section, row.category, row.account.subcategory)
        groups.setdefault(key, []).append(row)

    def order(item):
        (section, _, _), members = item
        rank = SECTION_ORDER.index(section) if section in SECTION_ORDER else len(SECTION_ORDER)
        return rank, min(r.account.sort_order for r in members)

    summary = []
    for (section, category, subcategory), members in sorted(groups.items(), key=order):
        starts = [r.earliest_transaction for r in members if r.earliest_transaction]
        ends = [r.latest_transaction for r in members if r.latest_transaction]
        summary.append(
            {
                "section": section,
                "category": category,
                "subcategory": subcategory,
                "account_count": len(members),
                "total_transactions": sum(r.transaction_count for r in members),
                "total_debits": sum((r.debit_amount for r in members), ZERO),
                "total_credits": sum((r.credit_amount for r in members), ZERO),
                "category_balance": sum((r.trial_balance_amount for r in members), ZERO),
                "period_start": min(starts) if starts else None,
                "period_end": max(ends) if ends else None,
            }
        )
    return summary


def is_balanced(total_debits: Decimal, total_credits: Decimal, tolerance: float = 0.01) -> bool:
    """True when |debits - credits| is within the tolerance (currency units)."""
    return abs(total_debits - total_credits) <= Decimal(str(tolerance))


def zero_balance_rows(rows: list[TrialBalanceRow]) -> list[TrialBalanceRow]:
    """Rows that have transactions but net to (almost) nothing."""
    return [r for r in rows if r.transaction_count > 0 and abs(r.trial_balance_amount) < Decimal("0.01")]

