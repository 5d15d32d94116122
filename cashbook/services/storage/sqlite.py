"""
SQLite Ledger Store

DESIGN DECISION: SQLite is the default relational backend because:
1. A single-operator cash book needs no database server
2. BEGIN IMMEDIATE gives us a serializable write scope for the
   balance check + insert
3. The file is trivial to back up

Amounts are stored as INTEGER minor units (amount x 100) so SUM is exact.
created_at keeps the ledger-timezone offset it was recorded with. Rows are
ordered by created_at_utc, and all date filters compare the calendar date
(created_on), never the timestamp.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import aiosqlite
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cashbook.config import StorageSettings
from cashbook.models.ledger import (
    CENT,
    LedgerSettings,
    LedgerTotals,
    Transaction,
    TransactionFilter,
    TransactionType,
)
from cashbook.services.storage.interface import (
    LedgerStoreInterface,
    StoreConnectionError,
    StoreError,
)

logger = structlog.get_logger(__name__)


MEMORY_PATH = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    initial_balance_minor INTEGER NOT NULL DEFAULT 0 CHECK (initial_balance_minor >= 0),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL CHECK (type IN ('receipt', 'payment')),
    amount_minor INTEGER NOT NULL CHECK (amount_minor > 0),
    address_id TEXT,
    address_name TEXT NOT NULL,
    description TEXT,
    reference_number TEXT NOT NULL,
    created_at TEXT NOT NULL,
    created_at_utc TEXT NOT NULL,
    created_on TEXT NOT NULL,
    created_by TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_transactions_created_at_utc ON transactions(created_at_utc);
CREATE INDEX IF NOT EXISTS idx_transactions_created_on ON transactions(created_on);
CREATE INDEX IF NOT EXISTS idx_transactions_type ON transactions(type);
CREATE INDEX IF NOT EXISTS idx_transactions_address_id ON transactions(address_id);
"""

TRANSACTION_COLUMNS = (
    "id, type, amount_minor, address_id, address_name, description, "
    "reference_number, created_at, created_at_utc, created_on, created_by"
)


def to_minor_units(amount: Decimal) -> int:
    """12.34 -> 1234. Amounts are validated to two places before storage."""
    return int((amount * 100).to_integral_value())


def from_minor_units(value: int) -> Decimal:
    """1234 -> Decimal('12.34')."""
    return Decimal(value).scaleb(-2).quantize(CENT)


def _timestamp(value: datetime) -> str:
    # Fixed width; text order is chronological only within one UTC offset
    return value.isoformat(timespec="microseconds")


def build_where(filters: Optional[TransactionFilter]) -> tuple[str, list[Any]]:
    """Translate a TransactionFilter into a WHERE clause and parameters."""
    if filters is None:
        return "", []

    clauses: list[str] = []
    params: list[Any] = []

    if filters.type:
        clauses.append("type = ?")
        params.append(filters.type.value)
    if filters.on_date:
        clauses.append("created_on = ?")
        params.append(filters.on_date.isoformat())
    if filters.date_from:
        clauses.append("created_on >= ?")
        params.append(filters.date_from.isoformat())
    if filters.date_to:
        clauses.append("created_on <= ?")
        params.append(filters.date_to.isoformat())
    if filters.before:
        clauses.append("created_on < ?")
        params.append(filters.before.isoformat())
    if filters.address_id:
        clauses.append("address_id = ?")
        params.append(filters.address_id)

    if not clauses:
        return "", []
    return " WHERE " + " AND ".join(clauses), params


class SQLiteLedgerStore(LedgerStoreInterface):
    """
    SQLite implementation of the ledger store.

    One aiosqlite connection in autocommit mode; atomic() opens an
    explicit BEGIN IMMEDIATE transaction under a per-store lock.

    Usage:
        store = SQLiteLedgerStore("cash.db")
        await store.initialize()
        ...
        await store.close()
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = 30000,
        connect_attempts: int = 3,
    ):
        self.db_path = str(db_path)
        self._busy_timeout_ms = busy_timeout_ms
        self._connect_attempts = connect_attempts
        self._conn: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "SQLiteLedgerStore":
        return cls(
            settings.sqlite_path,
            busy_timeout_ms=settings.busy_timeout_ms,
            connect_attempts=settings.connect_attempts,
        )

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def _open(self) -> aiosqlite.Connection:
        if self.db_path != MEMORY_PATH:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        if self.db_path != MEMORY_PATH:
            await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
        return conn

    async def connect(self) -> None:
        """
        Open the connection, retrying transient failures.

        Raises:
            StoreConnectionError: If every attempt fails
        """
        if self._conn is not None:
            return

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._connect_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(aiosqlite.OperationalError),
                reraise=True,
            ):
                with attempt:
                    self._conn = await self._open()
        except (aiosqlite.Error, OSError) as e:
            raise StoreConnectionError(
                f"Failed to open SQLite database {self.db_path}: {e}"
            ) from e

        logger.info("sqlite_connected", db_path=self.db_path)

    async def initialize(self) -> None:
        await self.connect()
        now = _timestamp(datetime.now(timezone.utc))
        try:
            await self._require_connection().executescript(SCHEMA)
            await self._execute(
                "INSERT OR IGNORE INTO settings "
                "(id, initial_balance_minor, created_at, updated_at) "
                "VALUES (1, 0, ?, ?)",
                (now, now),
            )
        except StoreError:
            raise
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to initialize schema: {e}") from e

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("sqlite_closed", db_path=self.db_path)

    def _require_connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreConnectionError("Not connected to database")
        return self._conn

    async def _execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | list[Any] = (),
    ) -> aiosqlite.Cursor:
        conn = self._require_connection()
        try:
            return await conn.execute(sql, parameters)
        except (aiosqlite.Error, OverflowError) as e:
            raise StoreError(f"SQLite error: {e}") from e

    async def _fetchone(self, sql: str, parameters: tuple | list = ()) -> Optional[aiosqlite.Row]:
        cursor = await self._execute(sql, parameters)
        try:
            return await cursor.fetchone()
        finally:
            await cursor.close()

    async def _fetchall(self, sql: str, parameters: tuple | list = ()) -> list[aiosqlite.Row]:
        cursor = await self._execute(sql, parameters)
        try:
            return list(await cursor.fetchall())
        finally:
            await cursor.close()

    # -------------------------------------------------------------------------
    # Write scope
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["SQLiteLedgerStore"]:
        if self._owner is not None and self._owner is asyncio.current_task():
            yield self
            return

        async with self._write_lock:
            self._owner = asyncio.current_task()
            try:
                await self._execute("BEGIN IMMEDIATE")
                try:
                    yield self
                except BaseException:
                    await self._rollback()
                    raise
                try:
                    await self._execute("COMMIT")
                except StoreError:
                    await self._rollback()
                    raise
            finally:
                self._owner = None

    async def _rollback(self) -> None:
        try:
            await self._require_connection().execute("ROLLBACK")
        except aiosqlite.Error as e:
            logger.error("sqlite_rollback_failed", error=str(e))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _row_to_transaction(self, row: aiosqlite.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            type=TransactionType(row["type"]),
            amount=from_minor_units(row["amount_minor"]),
            address_id=row["address_id"],
            address_name=row["address_name"],
            description=row["description"],
            reference_number=row["reference_number"],
            created_at=datetime.fromisoformat(row["created_at"]),
            created_by=row["created_by"],
        )

    async def insert_transaction(self, txn: Transaction) -> None:
        async with self.atomic():
            await self._execute(
                f"INSERT INTO transactions ({TRANSACTION_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    txn.id,
                    txn.type.value,
                    to_minor_units(txn.amount),
                    txn.address_id,
                    txn.address_name,
                    txn.description,
                    txn.reference_number,
                    _timestamp(txn.created_at),
                    _timestamp(txn.created_at_utc),
                    txn.created_on.isoformat(),
                    txn.created_by,
                ),
            )

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        row = await self._fetchone(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (transaction_id,),
        )
        return self._row_to_transaction(row) if row else None

    async def list_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        where, params = build_where(filters)
        direction = "DESC" if newest_first else "ASC"
        sql = (
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions{where} "
            f"ORDER BY created_at_utc {direction}, rowid {direction}"
        )
        if limit is not None or offset:
            # SQLite needs a LIMIT before OFFSET; -1 means unbounded
            sql += " LIMIT ? OFFSET ?"
            params = params + [limit if limit is not None else -1, offset]

        rows = await self._fetchall(sql, params)
        return [self._row_to_transaction(row) for row in rows]

    async def count_transactions(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> int:
        where, params = build_where(filters)
        row = await self._fetchone(
            f"SELECT COUNT(*) AS total FROM transactions{where}",
            params,
        )
        return int(row["total"])

    async def sum_amounts(
        self,
        filters: Optional[TransactionFilter] = None,
    ) -> LedgerTotals:
        where, params = build_where(filters)
        row = await self._fetchone(
            "SELECT "
            "COALESCE(SUM(CASE WHEN type = 'receipt' THEN amount_minor ELSE 0 END), 0) AS receipts, "
            "COALESCE(SUM(CASE WHEN type = 'payment' THEN amount_minor ELSE 0 END), 0) AS payments, "
            f"COUNT(*) AS total FROM transactions{where}",
            params,
        )
        return LedgerTotals(
            total_receipts=from_minor_units(row["receipts"]),
            total_payments=from_minor_units(row["payments"]),
            transaction_count=int(row["total"]),
        )

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def get_settings(self) -> LedgerSettings:
        row = await self._fetchone(
            "SELECT initial_balance_minor, created_at, updated_at "
            "FROM settings WHERE id = 1"
        )
        if row is None:
            raise StoreError("Settings record missing; call initialize() first")
        return LedgerSettings(
            initial_balance=from_minor_units(row["initial_balance_minor"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def set_initial_balance(self, initial_balance: Decimal) -> LedgerSettings:
        async with self.atomic():
            cursor = await self._execute(
                "UPDATE settings SET initial_balance_minor = ?, updated_at = ? WHERE id = 1",
                (to_minor_units(initial_balance), _timestamp(datetime.now(timezone.utc))),
            )
            if cursor.rowcount == 0:
                raise StoreError("Settings record missing; call initialize() first")
        return await self.get_settings()
