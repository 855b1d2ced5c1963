"""Tests for the statement-to-ledger pipeline."""

import threading
from decimal import Decimal

import pytest

from statement_ledger.config import Config, ExtractionConfig
from statement_ledger.runner import ProcessingTimeoutError, StatementPipeline
from statement_ledger.runner.pipeline import NO_TRANSACTIONS_ERROR
from statement_ledger.schemas.statement import Direction, ParseResult
from statement_ledger.state_store import LedgerStore, UploadStatus

from fixtures import SAMPLE_TYPE_COLUMN_CSV_STATEMENT, SAMPLE_TYPE_COLUMN_STATEMENT


@pytest.fixture
def pipeline(chart):
    return StatementPipeline(chart=chart)


class TestParse:
    """Tests for parsing statement text."""

    def test_single_out_column_row(self, pipeline):
        text = "Date        Description       Money Out\n01/03/2024  TESCO STORES  45.20"

        result = pipeline.parse(text)

        assert result.success is True
        tx = result.transactions[0]
        assert tx.date == "2024-03-01"
        assert tx.amount == Decimal("45.20")
        assert tx.direction == Direction.EXPENSE
        assert tx.category == "Expenses:Groceries"

    def test_column_statement(self, pipeline, column_statement):
        result = pipeline.parse(column_statement)

        assert result.success is True
        assert result.strategy == "column"
        assert result.duplicates_removed == 1
        assert [(t.date, t.description, t.account_code) for t in result.transactions] == [
            ("2024-03-01", "TESCO STORES 2034", "6180"),
            ("2024-03-02", "SALARY ACME LTD", "4000"),
            ("2024-03-05", "BRITISH GAS", "6320"),
            ("2024-03-06", "BARCLAYS BANK FEE", "6160"),
        ]
        assert result.total_income == Decimal("2500.00")
        assert result.total_expenses == Decimal("130.20")

    def test_account_info(self, pipeline, column_statement):
        info = pipeline.parse(column_statement).account_info

        assert info.bank_name == "Starling Bank"
        assert info.account_number == "****5678"
        assert info.sort_code == "**-**-71"

    def test_transactions_are_coded(self, pipeline, column_statement):
        result = pipeline.parse(column_statement)

        assert all(t.is_coded for t in result.transactions)
        assert len({t.coded_at for t in result.transactions}) == 1
        assert len({t.transaction_id for t in result.transactions}) == 4

    def test_idempotent(self, pipeline, column_statement):
        """Two runs over the same text compare equal (coded_at aside)."""
        assert pipeline.parse(column_statement).transactions == pipeline.parse(column_statement).transactions

    def test_independent_pipelines_agree(self, chart, section_statement):
        first = StatementPipeline(chart=chart).parse(section_statement)
        second = StatementPipeline(chart=chart).parse(section_statement)

        assert first.strategy == "section"
        assert first.transactions == second.transactions

    def test_table_statement(self, pipeline, table_statement):
        result = pipeline.parse(table_statement)

        assert result.strategy == "table"
        assert [t.account_code for t in result.transactions] == ["4000", "6180", "6150"]

    def test_no_transactions(self, pipeline):
        result = pipeline.parse("Starling Bank\nDear customer, thank you for banking with us.")

        assert result.success is False
        assert result.error == NO_TRANSACTIONS_ERROR
        assert result.transactions == []
        assert result.account_info.bank_name == "Starling Bank"

    def test_empty_text(self, pipeline):
        assert pipeline.parse("").success is False

    def test_type_column_statement(self, pipeline):
        result = pipeline.parse(SAMPLE_TYPE_COLUMN_STATEMENT)

        assert result.strategy == "column"
        assert result.duplicates_removed == 0
        assert [t.description for t in result.transactions] == [
            "TESCO STORES 2034",
            "SHELL PETROL STATION",
            "ACME LTD SALARY",
        ]

    def test_extraction_error_is_a_failure(self, pipeline, column_statement, monkeypatch):
        def broken(lines):
            raise RuntimeError("strategy crashed")

        monkeypatch.setattr(pipeline.router, "extract", broken)

        result = pipeline.parse(column_statement)

        assert result.success is False
        assert result.error == "Failed to parse statement: strategy crashed"

    def test_to_dict(self, pipeline, column_statement):
        data = pipeline.parse(column_statement).to_dict()

        assert data["success"] is True
        assert data["transaction_count"] == 4
        assert data["transactions"][0]["amount"] == "45.20"
        assert data["transactions"][0]["type"] == "expense"
        assert "error" not in data


class TestParseCSV:
    def test_csv_statement(self, pipeline, csv_statement):
        result = pipeline.parse_csv(csv_statement)

        assert result.strategy == "csv"
        assert [(t.date, t.account_code) for t in result.transactions] == [
            ("2024-03-01", "6180"),
            ("2024-03-02", "4000"),
        ]

    def test_iso_dates_kept(self, pipeline, signed_csv_statement):
        result = pipeline.parse_csv(signed_csv_statement)
        assert [t.date for t in result.transactions] == ["2024-03-01", "2024-03-02"]

    def test_falls_back_to_line_chain(self, pipeline, column_statement):
        result = pipeline.parse_csv(column_statement)
        assert result.strategy == "column"

    def test_same_day_same_amount_rows_are_kept(self, pipeline):
        """Rows sharing a transaction type still dedupe on their own descriptions."""
        result = pipeline.parse_csv(SAMPLE_TYPE_COLUMN_CSV_STATEMENT)

        assert result.duplicates_removed == 0
        assert [t.description for t in result.transactions] == [
            "TESCO STORES 2034",
            "SHELL PETROL STATION",
            "ACME LTD SALARY",
        ]
        assert result.transactions[1].category == "Expenses:Transport"

    def test_oversized_field_is_a_failure(self, pipeline):
        text = f'Date,Description,Paid In,Paid Out\n01/03/2024,"{"X" * 200_000}",,45.20\n'

        result = pipeline.parse_csv(text)

        assert result.success is False
        assert result.error.startswith("Failed to parse statement")
        assert result.transactions == []


class TestProcess:
    """Tests for processing raw document bytes."""

    def test_plain_text(self, pipeline, column_statement):
        result = pipeline.process(column_statement.encode("utf-8"), "text/plain")
        assert result.success is True
        assert len(result.transactions) == 4

    def test_csv_media_type(self, pipeline, csv_statement):
        result = pipeline.process(csv_statement.encode("utf-8"), "text/csv; charset=utf-8")
        assert result.strategy == "csv"

    def test_same_bytes_same_transactions(self, pipeline, column_statement):
        data = column_statement.encode("utf-8")
        assert pipeline.process(data, "text/plain").transactions == pipeline.process(data, "text/plain").transactions

    def test_unsupported_media_type(self, pipeline):
        result = pipeline.process(b"\x89PNG", "image/png")

        assert result.success is False
        assert result.error == "Unsupported media type: image/png"

    def test_unreadable_pdf(self, pipeline):
        result = pipeline.process(b"this is not a pdf", "application/pdf")

        assert result.success is False
        assert result.error.startswith("Failed to read document")

    def test_timeout(self, pipeline, monkeypatch):
        release = threading.Event()

        def slow(data, media_type):
            release.wait(5)
            return ParseResult.failure("late")

        monkeypatch.setattr(pipeline, "_process", slow)
        try:
            with pytest.raises(ProcessingTimeoutError) as exc_info:
                pipeline.process(b"", "text/plain", timeout=0.05)
        finally:
            release.set()

        assert exc_info.value.timeout == 0.05
        assert str(exc_info.value) == "Processing did not finish within 0.05 seconds"

    def test_configured_timeout(self, chart, monkeypatch):
        pipeline = StatementPipeline(chart=chart, config=Config(processing_timeout_seconds=0.05))
        release = threading.Event()
        monkeypatch.setattr(pipeline, "_process", lambda data, media_type: release.wait(5))
        try:
            with pytest.raises(ProcessingTimeoutError):
                pipeline.process(b"", "text/plain")
        finally:
            release.set()

    def test_date_pattern_strategy_opt_in(self, chart):
        config = Config(extraction=ExtractionConfig(enable_date_pattern_strategy=True))
        pipeline = StatementPipeline(chart=chart, config=config)
        assert "date_pattern" in [s.name for s in pipeline.router.strategies]


class TestIngest:
    """Tests for storing processed documents."""

    def test_configured_store_path(self, chart, config, column_statement):
        pipeline = StatementPipeline(chart=chart, config=config)
        store = LedgerStore(config.ledger_db_path)

        result = pipeline.ingest(store, "alice", "march.txt", column_statement.encode("utf-8"), "text/plain")

        assert result["success"] is True
        assert config.ledger_db_path.exists()

    def test_completed_upload(self, pipeline, store, column_statement):
        result = pipeline.ingest(store, "alice", "march.txt", column_statement.encode("utf-8"), "text/plain")

        assert result["success"] is True
        assert result["transaction_count"] == 4
        assert result["duplicates_removed"] == 1
        assert result["auto_coded"] == 4
        assert result["uncoded"] == 0
        assert result["total_expenses"] == Decimal("130.20")

        upload = store.get_upload(result["upload_id"])
        assert upload.status == UploadStatus.COMPLETED
        assert upload.transaction_count == 4
        assert upload.file_type == "text/plain"
        assert upload.account_info["bank_name"] == "Starling Bank"
        assert len(store.get_transactions("alice", upload_id=upload.id)) == 4

    def test_stored_transactions_record_coder(self, pipeline, store, column_statement):
        pipeline.ingest(store, "alice", "march.txt", column_statement.encode("utf-8"), "text/plain")
        assert {t.coded_by for t in store.get_transactions("alice")} == {"alice"}

    def test_failed_upload(self, pipeline, store):
        result = pipeline.ingest(store, "alice", "letter.txt", b"Dear customer", "text/plain")

        assert result == {"success": False, "upload_id": result["upload_id"], "error": NO_TRANSACTIONS_ERROR}
        upload = store.get_upload(result["upload_id"])
        assert upload.status == UploadStatus.FAILED
        assert upload.error_message == NO_TRANSACTIONS_ERROR

    def test_parse_error_fails_upload(self, pipeline, store, column_statement, monkeypatch):
        def broken(lines):
            raise RuntimeError("strategy crashed")

        monkeypatch.setattr(pipeline.router, "extract", broken)

        result = pipeline.ingest(store, "alice", "march.txt", column_statement.encode("utf-8"), "text/plain")

        assert result["success"] is False
        upload = store.get_upload(result["upload_id"])
        assert upload.status == UploadStatus.FAILED
        assert upload.error_message == "Failed to parse statement: strategy crashed"

    def test_oversized_csv_field_fails_upload(self, pipeline, store):
        data = f'Date,Description,Paid In,Paid Out\n01/03/2024,"{"X" * 200_000}",,45.20\n'.encode("utf-8")

        result = pipeline.ingest(store, "alice", "march.csv", data, "text/csv")

        assert result["success"] is False
        assert store.get_upload(result["upload_id"]).status == UploadStatus.FAILED

    def test_timeout_fails_upload(self, pipeline, store, monkeypatch):
        release = threading.Event()
        monkeypatch.setattr(pipeline, "_process", lambda data, media_type: release.wait(5))
        try:
            with pytest.raises(ProcessingTimeoutError):
                pipeline.ingest(store, "alice", "slow.pdf", b"%PDF", "application/pdf", timeout=0.05)
        finally:
            release.set()

        upload = store.get_uploads("alice")[0]
        assert upload.status == UploadStatus.FAILED
        assert upload.error_message == "Processing did not finish within 0.05 seconds"
