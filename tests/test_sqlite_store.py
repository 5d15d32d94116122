"""
Tests for the SQLite ledger store

Store-specific behaviour: schema setup, persistence across connections,
exact minor-unit storage and atomic rollback.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from cashbook.config import StorageSettings
from cashbook.models.ledger import Transaction, TransactionFilter, TransactionType
from cashbook.services.storage import (
    SQLiteLedgerStore,
    StoreConnectionError,
    StoreError,
)
from cashbook.services.storage.sqlite import (
    build_where,
    from_minor_units,
    to_minor_units,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_transaction(**overrides) -> Transaction:
    fields = dict(
        type=TransactionType.RECEIPT,
        amount=Decimal("10.00"),
        address_name="Party",
        reference_number="REC-1",
        created_at=utc(2024, 1, 1, 12),
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestMinorUnits:

    @pytest.mark.parametrize("amount,minor", [
        (Decimal("0.01"), 1),
        (Decimal("12.34"), 1234),
        (Decimal("100"), 10000),
        (Decimal("999999999.99"), 99999999999),
    ])
    def test_conversion(self, amount, minor):
        assert to_minor_units(amount) == minor
        assert from_minor_units(minor) == amount

    def test_from_minor_units_has_two_places(self):
        assert str(from_minor_units(500)) == "5.00"


class TestBuildWhere:

    def test_no_filter(self):
        assert build_where(None) == ("", [])
        assert build_where(TransactionFilter()) == ("", [])

    def test_combined(self):
        where, params = build_where(TransactionFilter(
            type=TransactionType.PAYMENT,
            date_from=date(2024, 1, 1),
            before=date(2024, 2, 1),
        ))
        assert where == " WHERE type = ? AND created_on >= ? AND created_on < ?"
        assert params == ["payment", "2024-01-01", "2024-02-01"]


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, tmp_path):
        store = SQLiteLedgerStore(tmp_path / "cash.db")
        await store.initialize()
        await store.set_initial_balance(Decimal("75.00"))
        await store.initialize()

        settings = await store.get_settings()
        assert settings.initial_balance == Decimal("75.00")
        await store.close()

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "ledger" / "cash.db"
        store = SQLiteLedgerStore(path)
        await store.initialize()
        await store.set_initial_balance(Decimal("1.50"))
        txn = make_transaction(amount=Decimal("0.10"))
        await store.insert_transaction(txn)
        await store.close()
        assert not store.is_connected

        reopened = SQLiteLedgerStore(path)
        await reopened.initialize()
        assert (await reopened.get_settings()).initial_balance == Decimal("1.50")
        loaded = await reopened.get_transaction(txn.id)
        assert loaded.amount == Decimal("0.10")
        assert loaded.created_at == txn.created_at
        await reopened.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        store = SQLiteLedgerStore(":memory:")
        await store.initialize()
        await store.insert_transaction(make_transaction())
        assert await store.count_transactions() == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_use_before_connect(self, tmp_path):
        store = SQLiteLedgerStore(tmp_path / "cash.db")
        with pytest.raises(StoreConnectionError):
            await store.get_settings()

    @pytest.mark.asyncio
    async def test_unopenable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = SQLiteLedgerStore(blocker / "cash.db", connect_attempts=1)
        with pytest.raises(StoreConnectionError):
            await store.initialize()

    def test_from_settings(self):
        settings = StorageSettings(
            _env_file=None,
            sqlite_path="/tmp/other.db",
            busy_timeout_ms=500,
            connect_attempts=2,
        )
        store = SQLiteLedgerStore.from_settings(settings)
        assert store.db_path == "/tmp/other.db"
        assert store._busy_timeout_ms == 500
        assert store._connect_attempts == 2


class TestAmounts:

    @pytest.mark.asyncio
    async def test_sums_are_exact(self, sqlite_store):
        for i in range(10):
            await sqlite_store.insert_transaction(
                make_transaction(amount=Decimal("0.10"), reference_number=f"R{i}")
            )
        await sqlite_store.insert_transaction(
            make_transaction(type=TransactionType.PAYMENT, amount=Decimal("0.30"))
        )

        totals = await sqlite_store.sum_amounts()
        assert totals.total_receipts == Decimal("1.00")
        assert totals.total_payments == Decimal("0.30")
        assert totals.transaction_count == 11

    @pytest.mark.asyncio
    async def test_rejects_negative_initial_balance_at_schema_level(self, sqlite_store):
        with pytest.raises(StoreError):
            await sqlite_store.set_initial_balance(Decimal("-1.00"))
        assert (await sqlite_store.get_settings()).initial_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_out_of_range_initial_balance_is_store_error(self, sqlite_store):
        with pytest.raises(StoreError):
            await sqlite_store.set_initial_balance(Decimal("1E+17"))
        assert (await sqlite_store.get_settings()).initial_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_integer_overflow_is_store_error(self, sqlite_store):
        with pytest.raises(StoreError):
            await sqlite_store._execute("SELECT ?", (2 ** 70,))


class TestAtomic:
    """atomic() commits on normal exit and rolls back on error."""

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, sqlite_store):
        with pytest.raises(RuntimeError):
            async with sqlite_store.atomic():
                await sqlite_store.insert_transaction(make_transaction())
                await sqlite_store.set_initial_balance(Decimal("9.00"))
                raise RuntimeError("boom")

        assert await sqlite_store.count_transactions() == 0
        assert (await sqlite_store.get_settings()).initial_balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_commit(self, sqlite_store):
        async with sqlite_store.atomic():
            await sqlite_store.insert_transaction(make_transaction())
        assert await sqlite_store.count_transactions() == 1

    @pytest.mark.asyncio
    async def test_usable_after_rollback(self, sqlite_store):
        with pytest.raises(RuntimeError):
            async with sqlite_store.atomic():
                raise RuntimeError("boom")

        await sqlite_store.insert_transaction(make_transaction())
        assert await sqlite_store.count_transactions() == 1

    @pytest.mark.asyncio
    async def test_duplicate_id(self, sqlite_store):
        txn = make_transaction()
        await sqlite_store.insert_transaction(txn)
        with pytest.raises(StoreError):
            await sqlite_store.insert_transaction(txn)
        assert await sqlite_store.count_transactions() == 1


class TestListing:

    @pytest.mark.asyncio
    async def test_offset_without_limit(self, sqlite_store):
        for hour in range(1, 5):
            await sqlite_store.insert_transaction(
                make_transaction(created_at=utc(2024, 1, 1, hour), reference_number=f"R{hour}")
            )

        rows = await sqlite_store.list_transactions(offset=1)
        assert [t.reference_number for t in rows] == ["R2", "R3", "R4"]

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, sqlite_store):
        for hour in range(1, 5):
            await sqlite_store.insert_transaction(
                make_transaction(created_at=utc(2024, 1, 1, hour), reference_number=f"R{hour}")
            )

        rows = await sqlite_store.list_transactions(newest_first=True, limit=2)
        assert [t.reference_number for t in rows] == ["R4", "R3"]
