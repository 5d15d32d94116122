"""
In-Memory Ledger Store

Keeps transactions in a Python list. Used by the test suite and for
throwaway ledgers (CASHBOOK_DB_BACKEND=memory). Behaves like the SQLite
store, including rollback of an atomic scope that raises.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, Optional

from pydantic import ValidationError as PydanticValidationError

from cashbook.models.ledger import (
    ZERO,
    LedgerSettings,
    LedgerTotals,
    Transaction,
    TransactionFilter,
    TransactionType,
)
from cashbook.services.storage.interface import LedgerStoreInterface, StoreError


class InMemoryLedgerStore(LedgerStoreInterface):
    """List-backed implementation of the ledger store."""

    def __init__(self):
        self._transactions: list[Transaction] = []
        self._ids: set[str] = set()
        self._settings: Optional[LedgerSettings] = None
        self._write_lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None

    async def initialize(self) -> None:
        if self._settings is None:
            now = datetime.now(timezone.utc)
            self._settings = LedgerSettings(
                initial_balance=ZERO,
                created_at=now,
                updated_at=now,
            )

    async def close(self) -> None:
        pass

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["InMemoryLedgerStore"]:
        if self._owner is not None and self._owner is asyncio.current_task():
            yield self
            return

        async with self._write_lock:
            self._owner = asyncio.current_task()
            saved_length = len(self._transactions)
            saved_settings = self._settings
            try:
                yield self
            except BaseException:
                for txn in self._transactions[saved_length:]:
                    self._ids.discard(txn.id)
                del self._transactions[saved_length:]
                self._settings = saved_settings
                raise
            finally:
                self._owner = None

    def _require_settings(self) -> LedgerSettings:
        if self._settings is None:
            raise StoreError("Store not initialized")
        return self._settings

    async def insert_transaction(self, txn: Transaction) -> None:
        self._require_settings()
        async with self.atomic():
            if txn.id in self._ids:
                raise StoreError(f"Duplicate transaction id: {txn.id}")
            self._transactions.append(txn)
            self._ids.add(txn.id)

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        return None

    def _select(
        self,
        filters: Optional[TransactionFilter],
    ) -> list[Transaction]:
        if filters is None:
            return list(self._transactions)
        return [txn for txn in self._transactions if filters.matches(txn)]

    async def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        # Stable sort keeps insertion order for equal instants
        rows = sorted(self._select(filters), key=lambda t: t.created_at_utc)
        if newest_first:
            rows.reverse()
        if limit is None:
            return rows[offset:]
        return rows[offset:offset + limit]

    async def count_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> int:
        return len(self._select(filters))

    async def sum_amounts(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> LedgerTotals:
        receipts = ZERO
        payments = ZERO
        count = 0
        for txn in self._select(filters):
            if txn.type == TransactionType.RECEIPT:
                receipts += txn.amount
            else:
                payments += txn.amount
            count += 1
        return LedgerTotals(
            total_receipts=receipts,
            total_payments=payments,
            transaction_count=count,
        )

    async def get_settings(self) -> LedgerSettings:
        return self._require_settings()

    async def set_initial_balance(self, initial_balance: Decimal) -> LedgerSettings:
        current = self._require_settings()
        try:
            updated = LedgerSettings(
                initial_balance=initial_balance,
                created_at=current.created_at,
                updated_at=datetime.now(timezone.utc),
            )
        except PydanticValidationError as e:
            raise StoreError(f"Invalid initial balance: {initial_balance}") from e
        async with self.atomic():
            self._settings = updated
        return self._settings
