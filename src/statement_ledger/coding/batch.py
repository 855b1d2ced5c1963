"""
Batch coding over stored transactions.

Every item is processed on its own: an invalid account code or a missing
transaction is recorded in ``errors`` and the batch carries on.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Optional

from ..state_store import CodingStatus, LedgerStore
from .service import MANUAL_CONFIDENCE, AccountCodingService, InvalidAccountCodeError

logger = logging.getLogger(__name__)

AUTO_CODED_NOTE = "Auto-coded"


@dataclass
class BatchCodingResult:
    """Per-item outcome of a batch coding run."""

    results: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success_count,
            "error_count": self.error_count,
            "results": self.results,
            "errors": self.errors,
        }


class BatchCodingService:
    """Applies coding to many stored transactions of one user."""

    def __init__(self, coder: AccountCodingService, store: LedgerStore):
        self.coder = coder
        self.store = store

    def auto_code_batch(
        self,
        user_id: str,
        upload_id: Optional[int] = None,
        overwrite: bool = False,
        coded_by: Optional[str] = None,
    ) -> BatchCodingResult:
        """
        Auto-code a user's transactions.

        Args:
            user_id: Owner of the transactions
            upload_id: Restrict to one upload
            overwrite: Re-code transactions that already carry a code
            coded_by: Recorded as the coder
        """
        status = CodingStatus.ALL if overwrite else CodingStatus.UNCODED
        transactions = self.store.get_transactions(user_id, upload_id=upload_id, status=status)
        result = BatchCodingResult()

        for tx in transactions:
            try:
                decision = self.coder.classify(tx.description, tx.amount, tx.is_income)
                if decision.account_code is None:
                    raise InvalidAccountCodeError(None)

                self.store.update_coding(
                    user_id,
                    tx.id,
                    decision.account_code,
                    decision.confidence,
                    notes=AUTO_CODED_NOTE,
                    coded_by=coded_by,
                )
                account = self.coder.get_account(decision.account_code)
                result.results.append(
                    {
                        "id": tx.id,
                        "account_code": decision.account_code,
                        "account_name": account.name if account else None,
                    }
                )
            except (InvalidAccountCodeError, sqlite3.Error) as e:
                logger.warning(f"Auto-coding failed for transaction {tx.id}: {e}")
                result.errors.append({"id": tx.id, "error": str(e)})

        logger.info(
            f"Auto-coded {result.success_count} transaction(s) for user {user_id} "
            f"({result.error_count} error(s))"
        )
        return result

    def bulk_update_codes(
        self,
        user_id: str,
        updates: list[dict[str, Any]],
        coded_by: Optional[str] = None,
    ) -> BatchCodingResult:
        """
        Apply manual codes.

        Args:
            user_id: Owner of the transactions
            updates: Items of the form ``{"id", "account_code", "notes"?}``
        """
        result = BatchCodingResult()

        for update in updates:
            tx_id = update.get("id")
            try:
                account_code = update.get("account_code")
                account = self.coder.get_account(account_code)
                if account is None:
                    raise InvalidAccountCodeError(account_code)

                updated = self.store.update_coding(
                    user_id,
                    tx_id,
                    account.code,
                    MANUAL_CONFIDENCE,
                    notes=update.get("notes"),
                    coded_by=coded_by,
                )
                if not updated:
                    result.errors.append({"id": tx_id, "error": "Transaction not found"})
                    continue

                result.results.append(
                    {
                        "id": tx_id,
                        "account_code": account.code,
                        "account_name": account.name,
                        "account_type": account.account_type.value,
                        "tax_code": account.tax_code,
                    }
                )
            except (InvalidAccountCodeError, sqlite3.Error) as e:
                result.errors.append({"id": tx_id, "error": str(e)})

        if result.errors:
            logger.warning(f"Bulk coding: {result.error_count} of {len(updates)} update(s) failed")
        return result
