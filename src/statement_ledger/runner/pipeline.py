"""
Statement-to-ledger pipeline.

    bytes -> text -> lines -> header -> candidates -> deduplicated
          -> dated + identified -> coded -> ParseResult

``parse`` and ``process`` never raise for bad input; failures come back as
``ParseResult(success=False)``. The only error surfaced to callers is
``ProcessingTimeoutError`` when a run exceeds its wall-clock limit.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import Any, Optional

from ..accounts import ChartOfAccounts
from ..coding import AccountCodingService
from ..config import Config
from ..extractors import CSVExtractor, ExtractorRouter, extract_account_info, segment_lines
from ..extractors.patterns import normalize_date
from ..extractors.text_extraction import (
    UnsupportedMediaTypeError,
    decode_text,
    extract_text,
    is_csv,
)
from ..schemas.dedupe import compute_file_hash, generate_transaction_id, remove_duplicate_transactions
from ..schemas.statement import CandidateTransaction, ParseResult, Transaction
from ..state_store import LedgerStore

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_ERROR = "No transactions found in statement"


class ProcessingTimeoutError(Exception):
    """Raised when processing a document takes longer than allowed."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Processing did not finish within {timeout:g} seconds")


class StatementPipeline:
    """
    Turns statement documents into coded transactions.

    Instances hold no per-document state; the chart is shared read-only, so
    independent pipelines may run concurrently.
    """

    def __init__(self, chart: Optional[ChartOfAccounts] = None, config: Optional[Config] = None):
        self.config = config or Config()
        self.chart = chart or ChartOfAccounts.default()
        self.router = ExtractorRouter(self.config.extraction)
        self.coder = AccountCodingService(self.chart, self.config.coding)

    def parse(self, text: str) -> ParseResult:
        """Extract, deduplicate, date-normalize and code the transactions of statement text."""
        try:
            return self._parse(text)
        except Exception as e:
            logger.exception("Failed to parse statement text")
            return ParseResult.failure(f"Failed to parse statement: {e}")

    def parse_csv(self, text: str) -> ParseResult:
        """
        Parse CSV statement text.

        Falls back to the line-based chain when no usable CSV header is found.
        """
        try:
            return self._parse_csv(text)
        except Exception as e:
            logger.exception("Failed to parse CSV statement")
            return ParseResult.failure(f"Failed to parse statement: {e}")

    def _parse(self, text: str) -> ParseResult:
        currency = self.config.extraction.default_currency
        account_info = extract_account_info(text, currency)

        lines = segment_lines(text)
        chain = self.router.extract(lines)
        if not chain.transactions:
            logger.info(f"No transactions found (tried: {', '.join(chain.attempted) or 'none'})")
            return ParseResult.failure(NO_TRANSACTIONS_ERROR, account_info)

        return self._finish(chain.transactions, chain.strategy, account_info)

    def _parse_csv(self, text: str) -> ParseResult:
        account_info = extract_account_info(text, self.config.extraction.default_currency)
        extractor = CSVExtractor(currency=account_info.currency)
        candidates = extractor.extract(text)
        if not candidates:
            return self._parse(text)

        return self._finish(candidates, extractor.name, account_info)

    def _finish(self, candidates: list[CandidateTransaction], strategy, account_info) -> ParseResult:
        unique = remove_duplicate_transactions(candidates)
        removed = len(candidates) - len(unique)
        if removed:
            logger.info(f"Removed {removed} duplicate transaction(s)")

        coded_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        transactions = []
        for position, candidate in enumerate(unique):
            date = normalize_date(candidate.date)
            tx = Transaction(
                transaction_id=generate_transaction_id(
                    candidate.amount,
                    date,
                    candidate.direction.value,
                    candidate.description,
                    position,
                ),
                date=date,
                description=candidate.description,
                amount=candidate.amount,
                direction=candidate.direction,
                currency=candidate.currency,
                category=candidate.category,
                strategy=candidate.strategy,
                extraction_confidence=candidate.confidence,
            )
            transactions.append(self.coder.auto_code(tx, coded_at=coded_at))

        logger.info(f"Parsed {len(transactions)} transaction(s) using strategy {strategy}")
        return ParseResult(
            success=True,
            transactions=transactions,
            account_info=account_info,
            strategy=strategy,
            duplicates_removed=removed,
        )

    def _process(self, data: bytes, media_type: str) -> ParseResult:
        try:
            if is_csv(media_type):
                return self.parse_csv(decode_text(data))
            text = extract_text(data, media_type)
        except UnsupportedMediaTypeError as e:
            logger.warning(str(e))
            return ParseResult.failure(str(e))
        except Exception as e:
            logger.exception("Failed to read statement document")
            return ParseResult.failure(f"Failed to read document: {e}")

        return self.parse(text)

    def process(self, data: bytes, media_type: str, timeout: Optional[float] = None) -> ParseResult:
        """
        Process raw document bytes.

        Args:
            data: Document bytes
            media_type: PDF, CSV or plain text media type
            timeout: Wall-clock limit in seconds (configured limit when omitted)

        Raises:
            ProcessingTimeoutError: If processing does not finish in time
        """
        if timeout is None:
            timeout = self.config.processing_timeout_seconds

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._process, data, media_type)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(f"Processing timed out after {timeout:g}s")
            raise ProcessingTimeoutError(timeout) from None
        finally:
            executor.shutdown(wait=False)

    def ingest(
        self,
        store: LedgerStore,
        user_id: str,
        file_name: str,
        data: bytes,
        media_type: str,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """
        Process a document and store it as an upload of ``user_id``.

        The upload is created in PROCESSING state and ends COMPLETED with its
        transactions, or FAILED with the error message. A timeout fails the
        upload and is re-raised.
        """
        upload_id = store.create_upload(
            user_id,
            file_name,
            file_type=media_type,
            file_size=len(data),
            file_hash=compute_file_hash(data),
        )

        try:
            result = self.process(data, media_type, timeout=timeout)
        except ProcessingTimeoutError as e:
            store.fail_upload(upload_id, str(e))
            raise

        if not result.success:
            store.fail_upload(upload_id, result.error or NO_TRANSACTIONS_ERROR)
            return {
                "success": False,
                "upload_id": upload_id,
                "error": result.error,
            }

        stored = store.insert_transactions(user_id, upload_id, result.transactions, coded_by=user_id)
        store.complete_upload(upload_id, stored, result.account_info.to_dict())

        coded = sum(1 for tx in result.transactions if tx.is_coded)
        return {
            "success": True,
            "upload_id": upload_id,
            "strategy": result.strategy,
            "transaction_count": stored,
            "duplicates_removed": result.duplicates_removed,
            "auto_coded": coded,
            "uncoded": result.transaction_count - coded,
            "total_income": result.total_income,
            "total_expenses": result.total_expenses,
            "account_info": result.account_info.to_dict(),
        }
