"""
Shared fixtures for Cashbook tests

Test strategy:
1. Every ledger behaviour runs against both stores (memory and SQLite)
2. Time is controlled by a settable clock, never the wall clock
3. No network, no shared database file between tests
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from cashbook.config import AppSettings
from cashbook.orchestrator import CashbookService
from cashbook.services.storage import InMemoryLedgerStore, SQLiteLedgerStore


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def utc(*args) -> datetime:
    """datetime(*args) in UTC."""
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc(2024, 1, 1, 9, 0, 0))


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(_env_file=None, ledger_timezone="UTC")


@pytest_asyncio.fixture
async def memory_store():
    store = InMemoryLedgerStore()
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path):
    store = SQLiteLedgerStore(tmp_path / "cash.db")
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path: Path):
    """Each test using this fixture runs once per store backend."""
    if request.param == "memory":
        store = InMemoryLedgerStore()
    else:
        store = SQLiteLedgerStore(tmp_path / "cash.db")
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def service(store, clock, app_settings) -> CashbookService:
    return CashbookService(store, app_settings=app_settings, clock=clock)
