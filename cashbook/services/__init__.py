"""Services package."""

from cashbook.services.storage import (
    InMemoryLedgerStore,
    LedgerStoreInterface,
    SQLiteLedgerStore,
    StoreConnectionError,
    StoreError,
)

__all__ = [
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "SQLiteLedgerStore",
    "StoreConnectionError",
    "StoreError",
]
