"""
Cashbook Service

This module ties the ledger components together behind the operations
an outer layer (HTTP handler, CLI, UI) calls:
1. Balances (current, as of a date)
2. Writes (receipts, payments, initial balance)
3. Reports (daily, range, dashboard)
4. History (paginated listing, lookup by id)

DESIGN DECISION: This is the only place that:
- Parses caller-facing date strings
- Knows "today" (via the ledger timezone clock)
- Chooses the store backend (create_cashbook)
Ledger components below it receive typed values and a store interface.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterator, Optional, Union

from cashbook.activity import ActivityLogger, configure_logging
from cashbook.config import AppSettings, StorageSettings, get_settings
from cashbook.exceptions import ValidationError
from cashbook.ledger import BalanceCalculator, ReportBuilder, TransactionWriter
from cashbook.ledger.writer import utc_now
from cashbook.models.ledger import (
    RecordedTransaction,
    SettingsSnapshot,
    Transaction,
)
from cashbook.models.reports import (
    DailyReport,
    DashboardSummary,
    RangeReport,
    TransactionPage,
)
from cashbook.queries import TransactionHistory
from cashbook.services.storage import (
    InMemoryLedgerStore,
    LedgerStoreInterface,
    SQLiteLedgerStore,
    StoreError,
)
from cashbook.validation import AmountInput, parse_amount, parse_iso_date


DateInput = Union[date, str]


def _optional_date(value: Optional[DateInput], field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_iso_date(value, field)


class CashbookService:
    """
    The ledger's public operations.

    Every operation logs validation failures and store errors before
    re-raising them unchanged.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        app_settings: Optional[AppSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._app = app_settings or get_settings().app
        tz = self._app.tzinfo
        source = clock or utc_now
        # Calendar days are days in the ledger timezone, whatever the clock returns
        self._clock = lambda: source().astimezone(tz)
        self._activity = activity_logger or ActivityLogger()

        self.calculator = BalanceCalculator(store)
        self.writer = TransactionWriter(
            store,
            calculator=self.calculator,
            clock=self._clock,
            operator_name=self._app.operator_name,
            currency_code=self._app.currency_code,
            activity_logger=self._activity,
        )
        self.reports = ReportBuilder(
            store,
            calculator=self.calculator,
            recent_transactions_limit=self._app.recent_transactions_limit,
            activity_logger=self._activity,
        )
        self.history = TransactionHistory(
            store,
            default_page_size=self._app.default_page_size,
            max_page_size=self._app.max_page_size,
        )

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    def today(self) -> date:
        """Current calendar day in the ledger timezone."""
        return self._clock().date()

    @contextmanager
    def _observed(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ValidationError as e:
            self._activity.log_validation_failed(operation, e.field, e.message)
            raise
        except StoreError as e:
            self._activity.log_store_error(operation, str(e))
            raise

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    async def get_current_balance(self) -> Decimal:
        with self._observed("get_current_balance"):
            return await self.calculator.current_balance()

    async def get_balance_as_of(self, day: DateInput) -> Decimal:
        with self._observed("get_balance_as_of"):
            return await self.calculator.balance_as_of(parse_iso_date(day, "date"))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_transaction(
        self,
        type: Any,
        amount: AmountInput,
        address_id: Optional[str] = None,
        address_name: Optional[str] = None,
        description: Optional[str] = None,
        reference_number: Optional[str] = None,
    ) -> RecordedTransaction:
        """Record a receipt or payment. See TransactionWriter.create_transaction."""
        with self._observed("create_transaction"):
            return await self.writer.create_transaction(
                type=type,
                amount=amount,
                address_id=address_id,
                address_name=address_name,
                description=description,
                reference_number=reference_number,
            )

    async def get_ledger_settings(self) -> SettingsSnapshot:
        with self._observed("get_ledger_settings"):
            settings = await self._store.get_settings()
            return SettingsSnapshot(
                settings=settings,
                current_balance=await self.calculator.current_balance(),
            )

    async def set_initial_balance(self, initial_balance: AmountInput) -> SettingsSnapshot:
        """
        Overwrite the initial balance.

        Raises:
            ValidationError: If the value is negative or not a number
        """
        with self._observed("set_initial_balance"):
            value = parse_amount(initial_balance, field="initial_balance", allow_zero=True)
            settings = await self._store.set_initial_balance(value)
            current = await self.calculator.current_balance()

        self._activity.log_initial_balance_updated(
            initial_balance=settings.initial_balance,
            current_balance=current,
        )
        return SettingsSnapshot(settings=settings, current_balance=current)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    async def daily_report(self, day: Optional[DateInput] = None) -> DailyReport:
        """Daily report for `day` (YYYY-MM-DD), defaulting to today."""
        with self._observed("daily_report"):
            target = _optional_date(day, "date") or self.today()
            return await self.reports.daily_report(target)

    async def range_report(
        self,
        start_date: Optional[DateInput],
        end_date: Optional[DateInput],
    ) -> RangeReport:
        """Range report; both dates are required."""
        with self._observed("range_report"):
            return await self.reports.range_report(
                parse_iso_date(start_date, "start_date"),
                parse_iso_date(end_date, "end_date"),
            )

    async def dashboard(self) -> DashboardSummary:
        with self._observed("dashboard"):
            return await self.reports.dashboard_summary(self.today())

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def list_transactions(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        type: Any = None,
        date: Optional[DateInput] = None,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        address_id: Optional[str] = None,
    ) -> TransactionPage:
        with self._observed("list_transactions"):
            return await self.history.list_transactions(
                page=page,
                limit=limit,
                type=type or None,
                date=_optional_date(date, "date"),
                start_date=_optional_date(start_date, "start_date"),
                end_date=_optional_date(end_date, "end_date"),
                address_id=address_id,
            )

    async def get_transaction(self, transaction_id: str) -> Transaction:
        with self._observed("get_transaction"):
            return await self.history.get_transaction(transaction_id)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        await self._store.close()

    async def __aenter__(self) -> "CashbookService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def create_store(storage_settings: StorageSettings) -> LedgerStoreInterface:
    """Pick the store implementation named by configuration."""
    if storage_settings.backend == "memory":
        return InMemoryLedgerStore()
    return SQLiteLedgerStore.from_settings(storage_settings)


async def create_cashbook(
    storage_settings: Optional[StorageSettings] = None,
    app_settings: Optional[AppSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> CashbookService:
    """
    Factory function to create a ready-to-use CashbookService.

    Args:
        storage_settings: Store configuration (defaults to environment)
        app_settings: Application configuration (defaults to environment)
        clock: Source of "now" (defaults to the system clock), read in the ledger timezone

    Returns:
        A service whose store is initialized. Close it when done, or
        use it as an async context manager.
    """
    settings = get_settings()
    storage_settings = storage_settings or settings.storage
    app_settings = app_settings or settings.app

    configure_logging(app_settings.log_level)

    store = create_store(storage_settings)
    await store.initialize()

    return CashbookService(
        store,
        app_settings=app_settings,
        clock=clock,
        activity_logger=ActivityLogger(),
    )
