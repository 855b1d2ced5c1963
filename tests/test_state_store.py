"""Tests for state store."""

import sqlite3
from decimal import Decimal

import pytest

from statement_ledger.state_store import CodingStatus, LedgerStore, UploadStatus
from statement_ledger.state_store.migrations import MigrationRunner, get_all_migrations

from fixtures import make_transaction


def _transactions():
    return [
        make_transaction("a1", "2024-03-01", "TESCO STORES", "45.20", account_code="6180"),
        make_transaction("a2", "2024-03-15", "SALARY ACME LTD", "2500.00", income=True, account_code="4000"),
        make_transaction("a3", "2024-04-02", "UNKNOWN SHOP", "12.00"),
    ]


class TestLedgerStore:
    """Tests for SQLite ledger store."""

    def test_init_creates_db(self, temp_db):
        """Initializing creates database file."""
        LedgerStore(temp_db)
        assert temp_db.exists()

    def test_creates_parent_directory(self, tmp_path):
        LedgerStore(tmp_path / "nested" / "dir" / "ledger.db")
        assert (tmp_path / "nested" / "dir" / "ledger.db").exists()

    def test_schema_has_coding_columns(self, store):
        conn = sqlite3.connect(str(store.db_path))
        try:
            columns = {row[1] for row in conn.execute("PRAGMA table_info(transactions)")}
        finally:
            conn.close()

        assert {"account_code", "coding_confidence", "coded_at", "coded_by", "notes"} <= columns

    def test_reopen_is_safe(self, temp_db):
        """Opening an existing database does not re-apply migrations."""
        LedgerStore(temp_db)
        store = LedgerStore(temp_db)
        upload_id = store.create_upload("alice", "march.pdf")
        assert store.get_upload(upload_id) is not None


class TestMigrations:
    def test_migrations_sorted(self):
        versions = [m.version for m in get_all_migrations()]
        assert versions == sorted(versions)
        assert versions[0] == 1

    def test_runner_records_versions(self, store):
        conn = sqlite3.connect(str(store.db_path))
        try:
            runner = MigrationRunner(conn)
            assert 1 in runner.get_applied_versions()
            assert runner.run_pending() == []
        finally:
            conn.close()


class TestUploads:
    """Tests for upload lifecycle."""

    def test_create_upload(self, store):
        upload_id = store.create_upload(
            "alice", "march.pdf", file_type="application/pdf", file_size=1024, file_hash="abc"
        )

        upload = store.get_upload(upload_id)
        assert upload.user_id == "alice"
        assert upload.file_name == "march.pdf"
        assert upload.file_size == 1024
        assert upload.status == UploadStatus.PROCESSING
        assert upload.completed_at is None

    def test_complete_upload(self, store):
        upload_id = store.create_upload("alice", "march.pdf")

        store.complete_upload(upload_id, 3, {"bank_name": "Monzo"})

        upload = store.get_upload(upload_id)
        assert upload.status == UploadStatus.COMPLETED
        assert upload.transaction_count == 3
        assert upload.account_info == {"bank_name": "Monzo"}
        assert upload.completed_at is not None

    def test_fail_upload(self, store):
        upload_id = store.create_upload("alice", "march.pdf")

        store.fail_upload(upload_id, "No transactions found in statement")

        upload = store.get_upload(upload_id)
        assert upload.status == UploadStatus.FAILED
        assert upload.error_message == "No transactions found in statement"

    def test_get_missing_upload(self, store):
        assert store.get_upload(42) is None

    def test_get_uploads_newest_first(self, store):
        first = store.create_upload("alice", "a.pdf")
        second = store.create_upload("alice", "b.pdf")
        store.create_upload("bob", "c.pdf")

        assert [u.id for u in store.get_uploads("alice")] == [second, first]

    def test_fix_stuck_uploads(self, store):
        stuck = store.create_upload("alice", "stuck.pdf")
        done = store.create_upload("alice", "done.pdf")
        store.complete_upload(done, 0)
        other_user = store.create_upload("bob", "stuck.pdf")

        assert store.fix_stuck_uploads("alice") == 1

        upload = store.get_upload(stuck)
        assert upload.status == UploadStatus.FAILED
        assert upload.error_message == "Processing did not finish"
        assert store.get_upload(done).status == UploadStatus.COMPLETED
        assert store.get_upload(other_user).status == UploadStatus.PROCESSING

    def test_fix_stuck_uploads_respects_age(self, store):
        upload_id = store.create_upload("alice", "recent.pdf")

        assert store.fix_stuck_uploads("alice", older_than_seconds=3600) == 0
        assert store.get_upload(upload_id).status == UploadStatus.PROCESSING


class TestTransactions:
    """Tests for stored transactions."""

    @pytest.fixture
    def upload_id(self, store):
        upload_id = store.create_upload("alice", "march.pdf")
        store.insert_transactions("alice", upload_id, _transactions(), coded_by="alice")
        return upload_id

    def test_insert_returns_count(self, store):
        upload_id = store.create_upload("alice", "march.pdf")
        assert store.insert_transactions("alice", upload_id, _transactions()) == 3

    def test_duplicate_transaction_ids_ignored(self, store, upload_id):
        assert store.insert_transactions("alice", upload_id, _transactions()) == 0
        assert len(store.get_transactions("alice")) == 3

    def test_same_transaction_in_another_upload(self, store, upload_id):
        other = store.create_upload("alice", "march-again.pdf")
        assert store.insert_transactions("alice", other, _transactions()[:1]) == 1

    def test_round_trip(self, store, upload_id):
        tx = next(t for t in store.get_transactions("alice") if t.transaction_id == "a2")

        assert tx.amount == Decimal("2500.00")
        assert tx.is_income is True
        assert tx.date == "2024-03-15"
        assert tx.account_code == "4000"
        assert tx.coded_by == "alice"
        assert tx.to_dict()["type"] == "income"
        assert tx.to_dict()["coding_status"] == "coded"

    def test_uncoded_has_no_coder(self, store, upload_id):
        tx = next(t for t in store.get_transactions("alice") if t.transaction_id == "a3")
        assert tx.coded_by is None
        assert tx.to_dict()["coding_status"] == "pending"

    def test_ordered_newest_first(self, store, upload_id):
        dates = [t.date for t in store.get_transactions("alice")]
        assert dates == ["2024-04-02", "2024-03-15", "2024-03-01"]

    @pytest.mark.parametrize(
        "status,expected",
        [
            (CodingStatus.ALL, {"a1", "a2", "a3"}),
            (CodingStatus.CODED, {"a1", "a2"}),
            ("uncoded", {"a3"}),
        ],
    )
    def test_status_filter(self, store, upload_id, status, expected):
        ids = {t.transaction_id for t in store.get_transactions("alice", status=status)}
        assert ids == expected

    def test_invalid_status(self, store):
        with pytest.raises(ValueError):
            store.get_transactions("alice", status="pending")

    def test_date_range_inclusive(self, store, upload_id):
        txs = store.get_transactions("alice", date_from="2024-03-01", date_to="2024-03-15")
        assert {t.transaction_id for t in txs} == {"a1", "a2"}

    def test_upload_filter(self, store, upload_id):
        other = store.create_upload("alice", "april.pdf")
        store.insert_transactions("alice", other, [make_transaction("b1", "2024-04-10", "X", "1.00")])

        assert [t.transaction_id for t in store.get_transactions("alice", upload_id=other)] == ["b1"]

    def test_users_are_isolated(self, store, upload_id):
        assert store.get_transactions("bob") == []
        tx = store.get_transactions("alice")[0]
        assert store.get_transaction("bob", tx.id) is None


class TestCoding:
    """Tests for coding updates and summaries."""

    @pytest.fixture
    def upload_id(self, store):
        upload_id = store.create_upload("alice", "march.pdf")
        store.insert_transactions("alice", upload_id, _transactions())
        return upload_id

    def test_update_coding(self, store, upload_id):
        tx = store.get_transactions("alice", status="uncoded")[0]

        assert store.update_coding("alice", tx.id, "6150", 1.0, notes="Paper", coded_by="alice")

        stored = store.get_transaction("alice", tx.id)
        assert stored.account_code == "6150"
        assert stored.coding_confidence == 1.0
        assert stored.notes == "Paper"
        assert stored.coded_by == "alice"
        assert stored.coded_at is not None

    def test_update_coding_wrong_user(self, store, upload_id):
        tx = store.get_transactions("alice")[0]
        assert store.update_coding("bob", tx.id, "6150", 1.0) is False

    def test_count_uncoded(self, store, upload_id):
        assert store.count_uncoded("alice") == 1
        assert store.count_uncoded("bob") == 0

    def test_coding_summary(self, store, upload_id):
        empty = store.create_upload("alice", "empty.pdf")

        summary = store.get_coding_summary("alice")

        assert [s["upload_id"] for s in summary] == [empty, upload_id]
        assert summary[0]["total_transactions"] == 0
        assert summary[0]["coding_percentage"] is None
        assert summary[1] == {
            "upload_id": upload_id,
            "file_name": "march.pdf",
            "status": "processing",
            "upload_date": summary[1]["upload_date"],
            "total_transactions": 3,
            "coded_transactions": 2,
            "uncoded_transactions": 1,
            "coding_percentage": 66.67,
        }
