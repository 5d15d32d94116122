"""
Data Models Package

This package contains all Pydantic models used by Cashbook.
All data flowing through the ledger must conform to these schemas.
"""

from cashbook.models.ledger import (
    LedgerSettings,
    LedgerTotals,
    RecordedTransaction,
    SettingsSnapshot,
    Transaction,
    TransactionFilter,
    TransactionType,
)
from cashbook.models.reports import (
    DailyBreakdownRow,
    DailyReport,
    DashboardSummary,
    Pagination,
    PeriodSummary,
    RangeReport,
    TodaySummary,
    TransactionPage,
)
from cashbook.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "LedgerSettings",
    "LedgerTotals",
    "RecordedTransaction",
    "SettingsSnapshot",
    "Transaction",
    "TransactionFilter",
    "TransactionType",
    # Report models
    "DailyBreakdownRow",
    "DailyReport",
    "DashboardSummary",
    "Pagination",
    "PeriodSummary",
    "RangeReport",
    "TodaySummary",
    "TransactionPage",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
