"""
Chart of accounts.

Static, read-only account metadata shared by the coding service and the
trial balance aggregator.
"""

from .chart import (
    BALANCE_SHEET,
    PROFIT_AND_LOSS,
    UK_CHART_OF_ACCOUNTS,
    Account,
    AccountType,
    ChartOfAccounts,
    NormalBalance,
    load_chart,
)

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "ChartOfAccounts",
    "UK_CHART_OF_ACCOUNTS",
    "PROFIT_AND_LOSS",
    "BALANCE_SHEET",
    "load_chart",
]
