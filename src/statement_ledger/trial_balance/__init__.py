"""
Trial balance.

Aggregates coded transactions per account, validates that debits equal
credits, and exports the result.
"""

from .aggregate import (
    TrialBalanceRow,
    aggregate_transactions,
    calculate_totals,
    debit_credit,
    is_balanced,
    section_totals,
    structure_trial_balance,
    trial_balance_amount,
)
from .export import export_to_csv, parse_trial_balance_csv
from .service import TrialBalanceService

__all__ = [
    "TrialBalanceRow",
    "TrialBalanceService",
    "aggregate_transactions",
    "calculate_totals",
    "debit_credit",
    "export_to_csv",
    "is_balanced",
    "parse_trial_balance_csv",
    "section_totals",
    "structure_trial_balance",
    "trial_balance_amount",
]
