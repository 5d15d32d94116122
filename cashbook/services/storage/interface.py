"""
Abstract Ledger Store Interface

DESIGN DECISION: The ledger core is written once against this interface.
This allows us to:
1. Swap SQLite for another relational backend without touching ledger code
2. Use in-memory storage for testing
3. Keep backend selection entirely in the composition root

The interface is intentionally narrow - insert, filtered list, filtered
sum, the settings record, and an atomic scope. Transactions are
append-only, so there is no update or delete.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from decimal import Decimal
from typing import Optional

from cashbook.models.ledger import (
    LedgerSettings,
    LedgerTotals,
    Transaction,
    TransactionFilter,
)


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any store implementation (SQLite, PostgreSQL, in-memory)
    must implement these methods.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Prepare the store for use.

        Creates the schema if needed and the settings record with an
        initial balance of 0 if it does not exist yet. Idempotent.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release any resources held by the store."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager["LedgerStoreInterface"]:
        """
        Scope in which reads and writes form one store transaction.

        Writers from other tasks wait until the scope exits. The scope
        commits on normal exit and rolls back if an exception escapes.
        Entering the scope again from the task that holds it is a no-op.

        Usage:
            async with store.atomic():
                balance = ...
                await store.insert_transaction(txn)
        """
        pass

    @abstractmethod
    async def insert_transaction(self, txn: Transaction) -> None:
        """
        Append a transaction.

        Raises:
            StoreError: If the insert fails (including duplicate id)
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """
        List transactions matching a filter.

        Args:
            filters: Filter to apply (None matches everything)
            newest_first: Order by created_at descending instead of ascending
            limit: Maximum number of results (None for all)
            offset: Number of results to skip

        Returns:
            Matching transactions ordered by created_at, ties broken
            by insertion order
        """
        pass

    @abstractmethod
    async def count_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> int:
        """Count transactions matching a filter."""
        pass

    @abstractmethod
    async def sum_amounts(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> LedgerTotals:
        """
        Sum receipts and payments separately over a filter.

        Returns:
            Totals (zero when nothing matches) and the matching count
        """
        pass

    @abstractmethod
    async def get_settings(self) -> LedgerSettings:
        """Read the settings record."""
        pass

    @abstractmethod
    async def set_initial_balance(self, initial_balance: Decimal) -> LedgerSettings:
        """
        Overwrite the initial balance and touch updated_at.

        Returns:
            The updated settings record
        """
        pass


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class StoreConnectionError(StoreError):
    """Could not connect to the storage backend."""
    pass
