"""Tests for the bank importer and the category backfill."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from tenacity import wait_none

from budgeter.exceptions import ValidationError
from budgeter.models import AuditEventType, TransactionType
from budgeter.services.bank import (
    BankConnectionError,
    BankDataSource,
    BankTransaction,
    TransactionImporter,
    backfill_categories,
    bank_transaction_id,
    is_probable_duplicate,
    to_transaction,
)
from budgeter.services.storage import InMemoryStorage, StorageError

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


class FakeBankSource(BankDataSource):
    """Serves canned records; fails the first ``failures`` calls."""

    def __init__(self, records, failures=0):
        self.records = records
        self.failures = failures
        self.calls = 0

    async def fetch_transactions(self, owner_id, start, end):
        self.calls += 1
        if self.calls <= self.failures:
            raise BankConnectionError("Bank provider unreachable")
        return list(self.records)


def record(transaction_id, amount, day="2024-01-10", name="Coffee Shop", category=None):
    return BankTransaction.model_validate({
        "transaction_id": transaction_id,
        "amount": amount,
        "date": day,
        "name": name,
        "category": category,
    })


@pytest.fixture
def make_importer(storage, audit_logger):
    def _make(source, max_attempts=3):
        return TransactionImporter(
            source, storage, audit_logger, max_attempts=max_attempts, wait=wait_none()
        )
    return _make


class TestToTransaction:
    """Tests for record conversion."""

    def test_positive_is_withdrawal(self, owner_id):
        """Test that outflows become withdrawals."""
        txn = to_transaction(owner_id, record("t1", "12.50", category="FOOD_AND_DRINK_COFFEE"))

        assert txn.type == TransactionType.WITHDRAWAL
        assert txn.amount == Decimal("12.50")
        assert txn.category == "dining"
        assert txn.booked_on == date(2024, 1, 10)

    def test_negative_is_deposit(self, owner_id):
        """Test that inflows become deposits with a positive amount."""
        txn = to_transaction(owner_id, record("t2", "-2500", name="Payroll", category="INCOME_WAGES"))

        assert txn.type == TransactionType.DEPOSIT
        assert txn.amount == Decimal("2500.00")
        assert txn.category == "income"

    def test_unknown_category_is_miscellaneous(self, owner_id):
        """Test unmapped and missing provider codes."""
        assert to_transaction(owner_id, record("t3", "1", category="SOMETHING_NEW")).category == "miscellaneous"
        assert to_transaction(owner_id, record("t4", "1")).category == "miscellaneous"

    def test_deterministic_id(self, owner_id, other_owner_id):
        """Test ids are stable per owner and provider id."""
        first = to_transaction(owner_id, record("t5", "1"))
        again = to_transaction(owner_id, record("t5", "2"))
        other = to_transaction(other_owner_id, record("t5", "1"))

        assert first.id == again.id == bank_transaction_id(owner_id, "t5")
        assert other.id != first.id

    @pytest.mark.parametrize("missing", ["amount", "date"])
    def test_missing_values_rejected(self, owner_id, missing):
        """Test that records without amount or date are validation errors."""
        data = {"transaction_id": "t6", "amount": "1", "date": "2024-01-10"}
        del data[missing]

        with pytest.raises(ValidationError) as exc_info:
            to_transaction(owner_id, BankTransaction.model_validate(data))
        assert exc_info.value.field == missing


class TestDuplicateDetection:
    """Tests for is_probable_duplicate."""

    def test_same_amount_day_and_prefix(self, make_transaction):
        """Test a manual entry matching a bank record."""
        manual = make_transaction(12.5, date(2024, 1, 10), description="coffee shop downtown")
        imported = make_transaction(12.5, date(2024, 1, 11), description="Coffee Shop")

        assert is_probable_duplicate(imported, manual)

    def test_different_amount(self, make_transaction):
        """Test that amounts must match."""
        a = make_transaction(12.5, date(2024, 1, 10), description="Coffee Shop")
        b = make_transaction(13.5, date(2024, 1, 10), description="Coffee Shop")

        assert not is_probable_duplicate(a, b)

    def test_too_far_apart(self, make_transaction):
        """Test that records two days apart are distinct."""
        a = make_transaction(12.5, date(2024, 1, 10), description="Coffee Shop")
        b = make_transaction(12.5, date(2024, 1, 12), description="Coffee Shop")

        assert not is_probable_duplicate(a, b)

    def test_different_type(self, make_transaction):
        """Test that a deposit never duplicates a withdrawal."""
        spent = make_transaction(20, date(2024, 1, 10), description="Coffee shop")
        refund = make_transaction(
            20, date(2024, 1, 10), type=TransactionType.DEPOSIT, description="Coffee shop"
        )

        assert not is_probable_duplicate(refund, spent)

    def test_empty_description_matches_only_by_id(self, make_transaction):
        """Test that a nameless record is not swallowed by any same-amount twin."""
        existing = make_transaction(20, date(2024, 1, 10), description="Coffee shop")
        nameless = make_transaction(20, date(2024, 1, 10))

        assert not is_probable_duplicate(nameless, existing)
        assert is_probable_duplicate(nameless, nameless)


class TestTransactionImporter:
    """Tests for TransactionImporter."""

    def test_import_stores_and_audits(self, make_importer, storage, owner_id, audit_storage):
        """Test a clean import."""
        source = FakeBankSource([
            record("a", "12.50", name="Coffee Shop", category="FOOD_AND_DRINK_COFFEE"),
            record("b", "-2500", name="Payroll", category="INCOME_WAGES"),
        ])

        result = asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert result.fetched == 2
        assert result.imported_count == 2
        stored = asyncio.run(storage.list_transactions(owner_id))
        assert {t.category for t in stored} == {"dining", "income"}
        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.TRANSACTIONS_IMPORTED

    def test_malformed_record_stores_nothing(self, make_importer, storage, owner_id):
        """Test that one bad record fails the whole import."""
        source = FakeBankSource([
            record("a", "12.50"),
            BankTransaction(transaction_id="b", name="No amount"),
        ])

        with pytest.raises(ValidationError):
            asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert asyncio.run(storage.list_transactions(owner_id)) == []

    def test_retry_then_success(self, make_importer, owner_id):
        """Test that two connection failures are retried."""
        source = FakeBankSource([record("a", "5")], failures=2)

        result = asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert source.calls == 3
        assert result.imported_count == 1

    def test_retries_exhausted(self, make_importer, owner_id, audit_storage):
        """Test that the connection error surfaces after three attempts."""
        source = FakeBankSource([record("a", "5")], failures=5)

        with pytest.raises(BankConnectionError):
            asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert source.calls == 3
        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.EXTERNAL_SERVICE_ERROR

    def test_reimport_is_idempotent(self, make_importer, storage, owner_id):
        """Test that importing the same window twice adds nothing."""
        source = FakeBankSource([record("a", "5"), record("b", "7", name="Bakery")])
        importer = make_importer(source)

        asyncio.run(importer.import_transactions(owner_id, JAN_1, JAN_31))
        second = asyncio.run(importer.import_transactions(owner_id, JAN_1, JAN_31))

        assert second.imported_count == 0
        assert second.skipped_duplicates == 2
        assert len(asyncio.run(storage.list_transactions(owner_id))) == 2

    def test_skips_manual_duplicate(self, make_importer, storage, owner_id, make_transaction):
        """Test that a manually entered twin is not imported again."""
        asyncio.run(storage.save_transactions([
            make_transaction(12.5, date(2024, 1, 10), category="dining", description="Coffee Shop")
        ]))
        source = FakeBankSource([record("a", "12.50", name="Coffee Shop")])

        result = asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert result.skipped_duplicates == 1
        assert len(asyncio.run(storage.list_transactions(owner_id))) == 1

    def test_nameless_deposit_not_dropped(self, make_importer, storage, owner_id, make_transaction):
        """Test a nameless deposit beside a same-amount withdrawal is imported."""
        asyncio.run(storage.save_transactions([
            make_transaction(20, date(2024, 1, 10), category="dining", description="Coffee shop")
        ]))
        source = FakeBankSource([record("a", "-20", name="")])

        result = asyncio.run(make_importer(source).import_transactions(owner_id, JAN_1, JAN_31))

        assert result.imported_count == 1
        assert result.skipped_duplicates == 0
        assert result.imported[0].type == TransactionType.DEPOSIT

    def test_storage_failure_audited(self, owner_id, audit_logger, audit_storage):
        """Test that a rejected batch is audited and re-raised."""
        class FailingStorage(InMemoryStorage):
            async def save_transactions(self, transactions):
                raise StorageError("Store is read-only")

        importer = TransactionImporter(
            FakeBankSource([record("a", "5")]),
            FailingStorage(),
            audit_logger,
            wait=wait_none(),
        )

        with pytest.raises(StorageError):
            asyncio.run(importer.import_transactions(owner_id, JAN_1, JAN_31))

        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.SYSTEM_ERROR
        assert events[0].error_message == "Store is read-only"

    def test_inverted_window(self, make_importer, owner_id):
        """Test end before start."""
        with pytest.raises(ValidationError):
            asyncio.run(make_importer(FakeBankSource([])).import_transactions(owner_id, JAN_31, JAN_1))


class TestBackfillCategories:
    """Tests for the legacy category migration."""

    def test_rewrites_then_noop(self, storage, owner_id, make_transaction):
        """Test that legacy values are rewritten once."""
        asyncio.run(storage.save_transactions([
            make_transaction(10, date(2024, 1, 2), category="Dining & Restaurants"),
            make_transaction(20, date(2024, 1, 3), category="FOOD_AND_DRINK_COFFEE"),
            make_transaction(30, date(2024, 1, 4), category="Other"),
            make_transaction(40, date(2024, 1, 5), category="groceries"),
        ]))

        first = asyncio.run(backfill_categories(storage, owner_id))
        second = asyncio.run(backfill_categories(storage, owner_id))

        assert first == 3
        assert second == 0
        categories = sorted(t.category for t in asyncio.run(storage.list_transactions(owner_id)))
        assert categories == ["dining", "dining", "groceries", "miscellaneous"]

    def test_audited_when_logger_given(self, storage, owner_id, audit_logger, audit_storage):
        """Test the backfill audit event."""
        asyncio.run(backfill_categories(storage, owner_id, audit_logger))

        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.CATEGORIES_BACKFILLED
