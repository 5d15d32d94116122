"""
Report Builder

Composes opening balance, period totals and per-day breakdowns.

Every report follows the same shape:
    opening = balance at the end of the day before the period
    totals  = store.sum_amounts(period filter)
    closing = opening + totals.total_receipts - totals.total_payments

Reports are pure reads: the same arguments with no writes in between
give the same report.
"""

from datetime import date
from typing import Optional

from cashbook.activity import ActivityLogger
from cashbook.exceptions import ValidationError
from cashbook.ledger.balance import BalanceCalculator, compute_balance
from cashbook.models.ledger import (
    LedgerTotals,
    Transaction,
    TransactionFilter,
    TransactionType,
)
from cashbook.models.reports import (
    DailyBreakdownRow,
    DailyReport,
    DashboardSummary,
    PeriodSummary,
    RangeReport,
    TodaySummary,
)
from cashbook.services.storage import LedgerStoreInterface


def build_daily_breakdown(transactions: list[Transaction]) -> list[DailyBreakdownRow]:
    """
    Group transactions by calendar date.

    One row per date that has at least one transaction, ascending.
    Dates without transactions get no row.
    """
    rows: dict[date, DailyBreakdownRow] = {}

    for txn in transactions:
        day = txn.created_on
        row = rows.get(day)
        if row is None:
            row = DailyBreakdownRow(date=day, transaction_count=1)
            rows[day] = row
        else:
            row.transaction_count += 1

        if txn.type == TransactionType.RECEIPT:
            row.total_receipts += txn.amount
        else:
            row.total_payments += txn.amount

    return [rows[day] for day in sorted(rows)]


class ReportBuilder:
    """
    Builds daily, range and dashboard reports from the store.

    Backed by one aggregation primitive (store.sum_amounts) and the
    balance calculator for opening balances.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        calculator: Optional[BalanceCalculator] = None,
        recent_transactions_limit: int = 10,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._calculator = calculator or BalanceCalculator(store)
        self._recent_limit = recent_transactions_limit
        self._activity_logger = activity_logger

    async def _aggregate(self, filters: TransactionFilter) -> LedgerTotals:
        return await self._store.sum_amounts(filters)

    async def daily_report(self, day: date) -> DailyReport:
        """
        Report for one calendar day.

        A day with no transactions has zero totals and
        closing_balance == opening_balance.
        """
        period = TransactionFilter(on_date=day)

        opening = await self._calculator.opening_balance(day)
        totals = await self._aggregate(period)
        transactions = await self._store.list_transactions(period)

        report = DailyReport(
            date=day,
            opening_balance=opening,
            total_receipts=totals.total_receipts,
            total_payments=totals.total_payments,
            closing_balance=opening + totals.net,
            transactions=transactions,
            transaction_count=len(transactions),
        )

        if self._activity_logger:
            self._activity_logger.log_report_generated(
                report_type="daily",
                start_date=day,
                end_date=day,
                transaction_count=report.transaction_count,
            )

        return report

    async def range_report(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> RangeReport:
        """
        Report over [start_date, end_date], both bounds inclusive.

        A start_date after end_date is not an error: no transaction can
        match, so the report is empty with closing == opening.

        Raises:
            ValidationError: If either date is missing
        """
        if start_date is None:
            raise ValidationError("start_date", "is required")
        if end_date is None:
            raise ValidationError("end_date", "is required")

        period = TransactionFilter(date_from=start_date, date_to=end_date)

        opening = await self._calculator.opening_balance(start_date)
        totals = await self._aggregate(period)
        transactions = await self._store.list_transactions(period)

        report = RangeReport(
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            total_receipts=totals.total_receipts,
            total_payments=totals.total_payments,
            closing_balance=opening + totals.net,
            transactions=transactions,
            daily_breakdown=build_daily_breakdown(transactions),
            transaction_count=len(transactions),
        )

        if self._activity_logger:
            self._activity_logger.log_report_generated(
                report_type="range",
                start_date=start_date,
                end_date=end_date,
                transaction_count=report.transaction_count,
            )

        return report

    async def dashboard_summary(self, today: date) -> DashboardSummary:
        """Current balance, today's activity, all-time totals and recent entries."""
        settings = await self._store.get_settings()
        all_time = await self._aggregate(TransactionFilter())
        today_totals = await self._aggregate(TransactionFilter(on_date=today))
        recent = await self._store.list_transactions(
            newest_first=True,
            limit=self._recent_limit,
        )

        return DashboardSummary(
            current_balance=compute_balance(settings, all_time),
            initial_balance=settings.initial_balance,
            today=TodaySummary(
                date=today,
                receipts=today_totals.total_receipts,
                payments=today_totals.total_payments,
                transactions=today_totals.transaction_count,
            ),
            all_time=PeriodSummary(
                receipts=all_time.total_receipts,
                payments=all_time.total_payments,
                transactions=all_time.transaction_count,
            ),
            recent_transactions=recent,
        )
