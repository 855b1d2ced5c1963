"""
Trial balance service.

Reads a user's coded transactions from the ledger repository and returns
trial balance views as result dicts. Every method returns
``{"success": True, ...}`` or ``{"success": False, "error": ...}``; an
unbalanced ledger is a validation message, not an exception.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from ..accounts import ChartOfAccounts
from ..config import TrialBalanceConfig
from .aggregate import (
    TOTAL_SECTION,
    CodedTransaction,
    TrialBalanceRow,
    aggregate_transactions,
    calculate_totals,
    is_balanced,
    section_totals,
    structure_trial_balance,
    summarize_by_category,
    zero_balance_rows,
)
from .export import export_to_csv

logger = logging.getLogger(__name__)


class TransactionRepository(Protocol):
    """The part of the ledger store the trial balance reads from."""

    def get_transactions(
        self,
        user_id: str,
        upload_id: Optional[int] = None,
        status: str = "all",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[CodedTransaction]: ...

    def count_uncoded(self, user_id: str) -> int: ...


class TrialBalanceService:
    """
    Trial balance views over one repository and one chart of accounts.

    Example:
        service = TrialBalanceService(store, ChartOfAccounts.default())
        result = service.validate_for_commit("user-1")
        result["ready_for_commit"]
    """

    def __init__(
        self,
        repository: TransactionRepository,
        chart: ChartOfAccounts,
        config: Optional[TrialBalanceConfig] = None,
    ):
        self.repository = repository
        self.chart = chart
        self.config = config or TrialBalanceConfig()

    def _rows(
        self,
        user_id: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        include_zero_balances: bool = True,
    ) -> list[TrialBalanceRow]:
        transactions = self.repository.get_transactions(
            user_id, status="coded", date_from=date_from, date_to=date_to
        )
        return aggregate_transactions(transactions, self.chart, include_zero_balances)

    def get_trial_balance(
        self,
        user_id: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        include_zero_balances: bool = False,
    ) -> dict[str, Any]:
        """
        Per-account trial balance grouped by section and category.

        Args:
            user_id: Owner of the ledger
            date_from: Inclusive lower date bound (YYYY-MM-DD)
            date_to: Inclusive upper date bound (YYYY-MM-DD)
            include_zero_balances: Include every chart account, even without activity
        """
        options = {
            "date_from": date_from,
            "date_to": date_to,
            "include_zero_balances": include_zero_balances,
        }
        try:
            rows = self._rows(user_id, date_from, date_to, include_zero_balances)
        except Exception as e:
            logger.error(f"Error fetching trial balance for user {user_id}: {e}")
            return {"success": False, "error": str(e)}

        return {
            "success": True,
            "trial_balance": structure_trial_balance(rows),
            "accounts": [row.to_dict() for row in rows],
            "totals": calculate_totals(rows),
            "metadata": {
                "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "user_id": user_id,
                "options": options,
                "account_count": len(rows),
            },
        }

    def get_trial_balance_summary(self, user_id: str) -> dict[str, Any]:
        """Totals per section, category and subcategory."""
        try:
            rows = self._rows(user_id)
        except Exception as e:
            logger.error(f"Error fetching trial balance summary for user {user_id}: {e}")
            return {"success": False, "error": str(e)}

        return {"success": True, "summary": summarize_by_category(rows)}

    def get_trial_balance_totals(self, user_id: str) -> dict[str, Any]:
        """Per-section totals, a TOTAL row, and whether debits equal credits."""
        try:
            rows = self._rows(user_id)
        except Exception as e:
            logger.error(f"Error fetching trial balance totals for user {user_id}: {e}")
            return {"success": False, "error": str(e)}

        totals = section_totals(rows)
        return {
            "success": True,
            "totals": totals,
            "is_balanced": self._validate_balance(totals),
        }

    def _validate_balance(self, totals: list[dict[str, Any]]) -> bool:
        total = next((row for row in totals if row["section"] == TOTAL_SECTION), None)
        if total is None:
            return False
        return is_balanced(total["section_debits"], total["section_credits"], self.config.tolerance)

    def validate_for_commit(self, user_id: str) -> dict[str, Any]:
        """
        Check that the ledger can be committed.

        Errors (block the commit):
        - Uncoded transactions exist
        - Debits and credits differ by more than the tolerance

        Warnings:
        - Accounts with activity that nets to zero
        """
        try:
            rows = self._rows(user_id)
            uncoded = self.repository.count_uncoded(user_id)
        except Exception as e:
            logger.error(f"Error validating trial balance for user {user_id}: {e}")
            return {"success": False, "error": "Failed to fetch trial balance data for validation"}

        totals = section_totals(rows)
        total = totals[-1]
        balanced = self._validate_balance(totals)

        validation: dict[str, Any] = {
            "is_balanced": balanced,
            "total_debits": total["section_debits"],
            "total_credits": total["section_credits"],
            "accounts_with_balances": total["accounts_with_balances"],
            "uncoded_transactions": uncoded,
            "warnings": [],
            "errors": [],
        }

        if uncoded > 0:
            validation["errors"].append(
                f"{uncoded} transactions are not coded and cannot be included in trial balance"
            )

        if not balanced:
            validation["errors"].append(
                f"Trial balance is not balanced. "
                f"Debits: £{total['section_debits']:.2f}, Credits: £{total['section_credits']:.2f}"
            )

        zero_accounts = zero_balance_rows(rows)
        if zero_accounts:
            validation["warnings"].append(f"{len(zero_accounts)} accounts have zero balances")

        return {
            "success": True,
            "validation": validation,
            "ready_for_commit": not validation["errors"],
        }

    def export_trial_balance(
        self,
        user_id: str,
        fmt: str = "json",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        include_zero_balances: bool = False,
    ) -> dict[str, Any]:
        """Trial balance in ``json`` (the result dict itself) or ``csv`` form."""
        result = self.get_trial_balance(user_id, date_from, date_to, include_zero_balances)
        if not result["success"]:
            return result

        fmt = fmt.lower()
        if fmt == "csv":
            return export_to_csv(result)
        if fmt == "json":
            return result
        return {"success": False, "error": f"Unsupported export format: {fmt}"}

    @staticmethod
    def export_to_csv(trial_balance_result: dict[str, Any]) -> dict[str, Any]:
        return export_to_csv(trial_balance_result)
