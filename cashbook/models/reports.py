"""
Report Models

Output shapes for the report builder and transaction history.
Every numeric field is a Decimal; conversion to floats or strings
belongs to whatever renders the report.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from cashbook.models.ledger import ZERO, Transaction


class DailyReport(BaseModel):
    """
    Report for a single calendar day.

    closing_balance = opening_balance + total_receipts - total_payments
    """

    date: date
    opening_balance: Decimal
    total_receipts: Decimal = ZERO
    total_payments: Decimal = ZERO
    closing_balance: Decimal
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="The day's transactions, oldest first"
    )
    transaction_count: int = Field(default=0, ge=0)


class DailyBreakdownRow(BaseModel):
    """One row of a range report's daily breakdown."""

    date: date
    total_receipts: Decimal = ZERO
    total_payments: Decimal = ZERO
    transaction_count: int = Field(default=1, ge=1)


class RangeReport(BaseModel):
    """
    Report over an inclusive date range.

    Days without transactions are omitted from daily_breakdown
    rather than zero-filled.
    """

    start_date: date
    end_date: date
    opening_balance: Decimal
    total_receipts: Decimal = ZERO
    total_payments: Decimal = ZERO
    closing_balance: Decimal
    transactions: list[Transaction] = Field(default_factory=list)
    daily_breakdown: list[DailyBreakdownRow] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)


class PeriodSummary(BaseModel):
    """Receipts, payments and count for a dashboard panel."""

    receipts: Decimal = ZERO
    payments: Decimal = ZERO
    transactions: int = 0


class TodaySummary(PeriodSummary):
    date: date


class DashboardSummary(BaseModel):
    """Everything the dashboard shows in one read."""

    current_balance: Decimal
    initial_balance: Decimal
    today: TodaySummary
    all_time: PeriodSummary
    recent_transactions: list[Transaction] = Field(
        default_factory=list,
        description="Most recent transactions, newest first"
    )


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)


class TransactionPage(BaseModel):
    """A page of transaction history (newest first)."""

    transactions: list[Transaction] = Field(default_factory=list)
    pagination: Pagination
