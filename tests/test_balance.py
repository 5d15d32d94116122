"""
Tests for the balance calculator

Every test runs against both store backends.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from cashbook.ledger import BalanceCalculator, TransactionWriter, compute_balance
from cashbook.ledger.balance import previous_day
from cashbook.models.ledger import LedgerSettings, LedgerTotals


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def writer(store, clock):
    return TransactionWriter(store, clock=clock)


@pytest.fixture
def calculator(store):
    return BalanceCalculator(store)


class TestComputeBalance:

    def test_formula(self):
        settings = LedgerSettings(initial_balance=Decimal("100.00"))
        totals = LedgerTotals(
            total_receipts=Decimal("50.25"),
            total_payments=Decimal("30.00"),
            transaction_count=2,
        )
        assert compute_balance(settings, totals) == Decimal("120.25")

    def test_no_transactions(self):
        settings = LedgerSettings(initial_balance=Decimal("42.00"))
        assert compute_balance(settings, LedgerTotals()) == Decimal("42.00")

    def test_previous_day(self):
        assert previous_day(date(2024, 3, 1)) == date(2024, 2, 29)
        assert previous_day(date.min) is None


class TestCurrentBalance:
    """current = initial + receipts - payments, read fresh every time."""

    @pytest.mark.asyncio
    async def test_empty_ledger(self, calculator):
        assert await calculator.current_balance() == Decimal("0")

    @pytest.mark.asyncio
    async def test_initial_balance_only(self, store, calculator):
        await store.set_initial_balance(Decimal("250.00"))
        assert await calculator.current_balance() == Decimal("250.00")

    @pytest.mark.asyncio
    async def test_invariant_after_mixed_writes(self, store, writer, calculator, clock):
        await store.set_initial_balance(Decimal("100.00"))
        amounts = [
            ("receipt", "0.10"),
            ("receipt", "0.20"),
            ("payment", "0.30"),
            ("receipt", "1999.99"),
            ("payment", "500.01"),
        ]
        for txn_type, amount in amounts:
            await writer.create_transaction(txn_type, amount, address_name="Party")
            clock.advance(minutes=5)

        expected = Decimal("100.00")
        for txn_type, amount in amounts:
            expected += Decimal(amount) if txn_type == "receipt" else -Decimal(amount)

        assert await calculator.current_balance() == expected
        assert expected == Decimal("1599.98")

    @pytest.mark.asyncio
    async def test_reflects_initial_balance_change(self, store, writer, calculator):
        await writer.create_transaction("receipt", "10", address_name="Party")
        await store.set_initial_balance(Decimal("5.00"))
        assert await calculator.current_balance() == Decimal("15.00")


class TestBalanceAsOf:
    """Balance at the end of a calendar day."""

    @pytest.mark.asyncio
    async def test_before_first_transaction_is_initial_balance(self, store, writer, calculator, clock):
        await store.set_initial_balance(Decimal("100.00"))
        clock.set(utc(2024, 1, 10, 12, 0))
        await writer.create_transaction("receipt", "50", address_name="Party")

        assert await calculator.balance_as_of(date(2024, 1, 9)) == Decimal("100.00")
        assert await calculator.balance_as_of(date(2000, 1, 1)) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_time_of_day_is_ignored(self, writer, calculator, clock):
        clock.set(utc(2024, 1, 1, 23, 59, 59))
        await writer.create_transaction("receipt", "100", address_name="Late")
        clock.set(utc(2024, 1, 2, 0, 0, 1))
        await writer.create_transaction("receipt", "10", address_name="Early")

        assert await calculator.balance_as_of(date(2024, 1, 1)) == Decimal("100.00")
        assert await calculator.balance_as_of(date(2024, 1, 2)) == Decimal("110.00")

    @pytest.mark.asyncio
    async def test_matches_current_balance_on_last_day(self, writer, calculator, clock):
        clock.set(utc(2024, 2, 1, 9, 0))
        await writer.create_transaction("receipt", "300", address_name="A")
        clock.set(utc(2024, 2, 3, 9, 0))
        await writer.create_transaction("payment", "120", address_name="B")

        assert await calculator.balance_as_of(date(2024, 2, 3)) == await calculator.current_balance()

    @pytest.mark.asyncio
    async def test_opening_balance_is_previous_day_close(self, store, writer, calculator, clock):
        await store.set_initial_balance(Decimal("20.00"))
        clock.set(utc(2024, 5, 1, 8, 0))
        await writer.create_transaction("receipt", "80", address_name="A")
        clock.set(utc(2024, 5, 2, 8, 0))
        await writer.create_transaction("payment", "30", address_name="B")

        assert await calculator.opening_balance(date(2024, 5, 1)) == Decimal("20.00")
        assert await calculator.opening_balance(date(2024, 5, 2)) == Decimal("100.00")
        assert await calculator.opening_balance(date(2024, 5, 3)) == Decimal("70.00")

    @pytest.mark.asyncio
    async def test_opening_balance_for_earliest_date(self, store, calculator):
        await store.set_initial_balance(Decimal("9.99"))
        assert await calculator.opening_balance(date.min) == Decimal("9.99")
