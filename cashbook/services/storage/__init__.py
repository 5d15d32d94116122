"""
Storage Services Package

Provides the abstract ledger store interface and its implementations.
SQLite is the default backend; the in-memory store serves tests and
throwaway ledgers.
"""

from cashbook.services.storage.interface import (
    LedgerStoreInterface,
    StoreConnectionError,
    StoreError,
)
from cashbook.services.storage.memory import InMemoryLedgerStore
from cashbook.services.storage.sqlite import SQLiteLedgerStore

__all__ = [
    # Interface
    "LedgerStoreInterface",
    # Exceptions
    "StoreConnectionError",
    "StoreError",
    # Implementations
    "InMemoryLedgerStore",
    "SQLiteLedgerStore",
]
