"""
Balance Calculator

    balance = initial_balance + sum(receipts) - sum(payments)

Nothing is cached: every call reads the store, so a balance requested
right after a write already includes it.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from cashbook.models.ledger import LedgerSettings, LedgerTotals, TransactionFilter
from cashbook.services.storage import LedgerStoreInterface


def compute_balance(settings: LedgerSettings, totals: LedgerTotals) -> Decimal:
    """Apply the balance formula to a settings record and a set of totals."""
    return settings.initial_balance + totals.total_receipts - totals.total_payments


def previous_day(day: date) -> Optional[date]:
    """The day before `day`, or None when there is none."""
    if day == date.min:
        return None
    return day - timedelta(days=1)


class BalanceCalculator:
    """Derives balances from the store's aggregates."""

    def __init__(self, store: LedgerStoreInterface):
        self._store = store

    async def current_balance(self) -> Decimal:
        """Balance over every committed transaction."""
        settings = await self._store.get_settings()
        totals = await self._store.sum_amounts()
        return compute_balance(settings, totals)

    async def balance_as_of(self, day: date) -> Decimal:
        """
        Balance at the end of `day`.

        Includes every transaction whose calendar date is on or before
        `day`, whatever its time of day. A day before the first
        transaction gives the initial balance.
        """
        settings = await self._store.get_settings()
        totals = await self._store.sum_amounts(TransactionFilter(date_to=day))
        return compute_balance(settings, totals)

    async def opening_balance(self, day: date) -> Decimal:
        """Balance at the end of the day before `day`."""
        before = previous_day(day)
        if before is None:
            settings = await self._store.get_settings()
            return settings.initial_balance
        return await self.balance_as_of(before)
