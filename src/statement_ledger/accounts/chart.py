"""
Chart of accounts (read-only).

The chart is constructed once and never mutated afterwards. It is passed
explicitly into the coding service and the trial balance service, so several
pipeline runs can share one instance without locking.

The built-in chart follows the UK small-company layout:
- P&L: Turnover, Cost of sales, Administrative expenses, Interest, Taxation
- Balance Sheet: Fixed/Current Assets, Current Liabilities, Equity
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


class AccountType(str, Enum):
    """Broad account type."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSES = "Expenses"


class NormalBalance(str, Enum):
    """Side on which the account balance conventionally increases."""

    DR = "DR"
    CR = "CR"


PROFIT_AND_LOSS = "P&L"
BALANCE_SHEET = "Balance Sheet"


@dataclass(frozen=True)
class Account:
    """A single chart-of-accounts entry."""

    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    tax_code: str = "No VAT"
    category: Optional[str] = None
    subcategory: Optional[str] = None
    section: str = PROFIT_AND_LOSS
    sort_order: int = 0

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "type": self.account_type.value,
            "normal_balance": self.normal_balance.value,
            "tax_code": self.tax_code,
            "category": self.category,
            "subcategory": self.subcategory,
            "section": self.section,
            "sort_order": self.sort_order,
        }


def _pl(code, name, account_type, category, subcategory, normal, sort_order, tax_code):
    return Account(
        code=code,
        name=name,
        account_type=AccountType(account_type),
        normal_balance=NormalBalance(normal),
        tax_code=tax_code,
        category=category,
        subcategory=subcategory,
        section=PROFIT_AND_LOSS,
        sort_order=sort_order,
    )


def _bs(code, name, account_type, category, subcategory, normal, sort_order):
    return Account(
        code=code,
        name=name,
        account_type=AccountType(account_type),
        normal_balance=NormalBalance(normal),
        tax_code="No VAT",
        category=category,
        subcategory=subcategory,
        section=BALANCE_SHEET,
        sort_order=sort_order,
    )


# fmt: off
UK_CHART_OF_ACCOUNTS: tuple[Account, ...] = (
    # Turnover
    _pl("4000", "Sales", "Revenue", "Turnover", None, "CR", 100, "Standard Rate"),
    _pl("4010", "Fees", "Revenue", "Turnover", None, "CR", 110, "Standard Rate"),
    _pl("4020", "Reimbursed Expenses", "Revenue", "Turnover", None, "CR", 120, "Standard Rate"),
    # Cost of sales
    _pl("5000", "Purchases", "Expenses", "Cost of sales", None, "DR", 200, "Standard Rate"),
    _pl("5010", "Increase/Decrease in Stocks", "Expenses", "Cost of sales", None, "DR", 210, "No VAT"),
    _pl("5020", "Subcontractor Costs", "Expenses", "Cost of sales", None, "DR", 220, "Standard Rate"),
    _pl("5030", "Direct Labour", "Expenses", "Cost of sales", None, "DR", 230, "No VAT"),
    _pl("5040", "Carriage", "Expenses", "Cost of sales", None, "DR", 240, "Standard Rate"),
    # Administrative expenses - Employee costs
    _pl("6000", "Wages and Salaries", "Expenses", "Administrative expenses", "Employee costs", "DR", 300, "No VAT"),
    _pl("6010", "Directors Salaries", "Expenses", "Administrative expenses", "Employee costs", "DR", 310, "No VAT"),
    _pl("6020", "Pensions", "Expenses", "Administrative expenses", "Employee costs", "DR", 320, "No VAT"),
    _pl("6030", "Bonuses", "Expenses", "Administrative expenses", "Employee costs", "DR", 330, "No VAT"),
    _pl("6040", "Employer NI", "Expenses", "Administrative expenses", "Employee costs", "DR", 340, "No VAT"),
    _pl("6050", "Staff Training and Welfare", "Expenses", "Administrative expenses", "Employee costs", "DR", 350, "Standard Rate"),
    _pl("6060", "Travel and Subsistence", "Expenses", "Administrative expenses", "Employee costs", "DR", 360, "Standard Rate"),
    # Administrative expenses - General
    _pl("6100", "Motor Expenses", "Expenses", "Administrative expenses", "General", "DR", 400, "Standard Rate"),
    _pl("6110", "Entertaining", "Expenses", "Administrative expenses", "General", "DR", 410, "Standard Rate"),
    _pl("6120", "Telephone and Fax", "Expenses", "Administrative expenses", "General", "DR", 420, "Standard Rate"),
    _pl("6130", "Internet", "Expenses", "Administrative expenses", "General", "DR", 430, "Standard Rate"),
    _pl("6140", "Postage", "Expenses", "Administrative expenses", "General", "DR", 440, "Standard Rate"),
    _pl("6150", "Stationery and Printing", "Expenses", "Administrative expenses", "General", "DR", 450, "Standard Rate"),
    _pl("6160", "Bank Charges", "Expenses", "Administrative expenses", "General", "DR", 460, "No VAT"),
    _pl("6170", "Insurance", "Expenses", "Administrative expenses", "General", "DR", 470, "No VAT"),
    _pl("6180", "Software", "Expenses", "Administrative expenses", "General", "DR", 480, "Standard Rate"),
    _pl("6190", "Repairs and Maintenance", "Expenses", "Administrative expenses", "General", "DR", 490, "Standard Rate"),
    _pl("6200", "Depreciation", "Expenses", "Administrative expenses", "General", "DR", 500, "No VAT"),
    # Administrative expenses - Premises
    _pl("6300", "Rent", "Expenses", "Administrative expenses", "Premises costs", "DR", 600, "No VAT"),
    _pl("6310", "Rates", "Expenses", "Administrative expenses", "Premises costs", "DR", 610, "No VAT"),
    _pl("6320", "Light and Heat", "Expenses", "Administrative expenses", "Premises costs", "DR", 620, "Standard Rate"),
    _pl("6330", "Cleaning", "Expenses", "Administrative expenses", "Premises costs", "DR", 630, "Standard Rate"),
    # Administrative expenses - Legal & professional
    _pl("6400", "Audit Fees", "Expenses", "Administrative expenses", "Legal & professional", "DR", 700, "No VAT"),
    _pl("6410", "Accountancy Fees", "Expenses", "Administrative expenses", "Legal & professional", "DR", 710, "No VAT"),
    _pl("6420", "Solicitors Fees", "Expenses", "Administrative expenses", "Legal & professional", "DR", 720, "No VAT"),
    _pl("6430", "Consultancy Fees", "Expenses", "Administrative expenses", "Legal & professional", "DR", 730, "Standard Rate"),
    # Other income / expenses
    _pl("7000", "Interest Receivable", "Revenue", "Interest receivable", None, "CR", 800, "No VAT"),
    _pl("7100", "Interest Payable", "Expenses", "Interest payable", None, "DR", 900, "No VAT"),
    _pl("7200", "Corporation Tax", "Expenses", "Taxation", None, "DR", 1000, "No VAT"),
    # Fixed assets
    _bs("1000", "Computer Equipment - Cost", "Assets", "Fixed Assets", "Computer equipment", "DR", 2000),
    _bs("1001", "Computer Equipment - Depreciation", "Assets", "Fixed Assets", "Computer equipment", "CR", 2010),
    _bs("1100", "Motor Vehicles - Cost", "Assets", "Fixed Assets", "Motor vehicles", "DR", 2100),
    _bs("1101", "Motor Vehicles - Depreciation", "Assets", "Fixed Assets", "Motor vehicles", "CR", 2110),
    # Current assets
    _bs("1200", "Trade Debtors", "Assets", "Current Assets", "Debtors", "DR", 2200),
    _bs("1210", "Other Debtors", "Assets", "Current Assets", "Debtors", "DR", 2210),
    _bs("1220", "VAT Control Account", "Assets", "Current Assets", "VAT", "DR", 2220),
    _bs("1230", "Prepayments", "Assets", "Current Assets", "Prepayments", "DR", 2230),
    _bs("1300", "Cash at Bank", "Assets", "Current Assets", "Cash", "DR", 2300),
    _bs("1310", "Petty Cash", "Assets", "Current Assets", "Cash", "DR", 2310),
    # Current liabilities
    _bs("2000", "Trade Creditors", "Liabilities", "Current Liabilities", "Creditors", "CR", 3000),
    _bs("2010", "Other Creditors", "Liabilities", "Current Liabilities", "Creditors", "CR", 3010),
    _bs("2020", "VAT Liability", "Liabilities", "Current Liabilities", "VAT", "CR", 3020),
    _bs("2030", "PAYE/NI Liability", "Liabilities", "Current Liabilities", "Taxes", "CR", 3030),
    _bs("2040", "Corporation Tax Liability", "Liabilities", "Current Liabilities", "Taxes", "CR", 3040),
    _bs("2050", "Directors Loan Account", "Liabilities", "Current Liabilities", "Directors loans", "CR", 3050),
    _bs("2060", "Accruals", "Liabilities", "Current Liabilities", "Accruals", "CR", 3060),
    # Equity
    _bs("3000", "Share Capital", "Equity", "Share Capital", None, "CR", 4000),
    _bs("3100", "Profit and Loss Account", "Equity", "Retained Earnings", None, "CR", 4100),
    _bs("3200", "Dividends", "Equity", "Dividends", None, "DR", 4200),
)
# fmt: on


class ChartOfAccounts:
    """
    Immutable mapping of account code -> Account.

    Construct once (``ChartOfAccounts.default()`` or ``load_chart()``) and
    inject it wherever accounts are needed.
    """

    def __init__(self, accounts: Iterable[Account]):
        by_code: dict[str, Account] = {}
        for account in accounts:
            if account.code in by_code:
                raise ValueError(f"Duplicate account code in chart: {account.code}")
            by_code[account.code] = account
        self._accounts = MappingProxyType(by_code)
        logger.debug(f"Loaded {len(by_code)} accounts into chart of accounts")

    @classmethod
    def default(cls) -> "ChartOfAccounts":
        """The built-in UK chart of accounts."""
        return cls(UK_CHART_OF_ACCOUNTS)

    def __contains__(self, code: object) -> bool:
        return code in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.all())

    def get(self, code: Optional[str]) -> Optional[Account]:
        """Account by code, or None for unknown/empty codes."""
        if not code:
            return None
        return self._accounts.get(code)

    def all(self) -> list[Account]:
        """All accounts ordered by code."""
        return sorted(self._accounts.values(), key=lambda a: a.code)

    def by_type(self, account_type: AccountType) -> list[Account]:
        """Accounts of one type in chart declaration order."""
        return [a for a in self._accounts.values() if a.account_type == account_type]

    def in_display_order(self) -> list[Account]:
        """Accounts ordered by sort_order then code (trial balance layout)."""
        return sorted(self._accounts.values(), key=lambda a: (a.sort_order, a.code))


def load_chart(chart_path: Path) -> ChartOfAccounts:
    """
    Load a chart of accounts from YAML.

    Expected shape::

        accounts:
          - code: "4000"
            name: Sales
            type: Revenue
            normal_balance: CR
            category: Turnover
            section: P&L
            sort_order: 100

    Raises:
        ValueError: If an entry is missing required fields or uses an unknown type
    """
    with open(chart_path) as f:
        data = yaml.safe_load(f) or {}

    accounts = []
    for i, entry in enumerate(data.get("accounts", [])):
        try:
            accounts.append(
                Account(
                    code=str(entry["code"]),
                    name=entry["name"],
                    account_type=AccountType(entry["type"]),
                    normal_balance=NormalBalance(entry["normal_balance"]),
                    tax_code=entry.get("tax_code", "No VAT"),
                    category=entry.get("category"),
                    subcategory=entry.get("subcategory"),
                    section=entry.get("section", PROFIT_AND_LOSS),
                    sort_order=int(entry.get("sort_order", 0)),
                )
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid account entry #{i} in {chart_path}: {e}") from e

    if not accounts:
        raise ValueError(f"No accounts defined in {chart_path}")

    return ChartOfAccounts(accounts)
