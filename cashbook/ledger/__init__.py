"""
Ledger core: balance calculation, transaction writing and reports.

Written against LedgerStoreInterface only; no module here knows which
store backend is in use.
"""

from cashbook.ledger.balance import BalanceCalculator, compute_balance
from cashbook.ledger.reports import ReportBuilder, build_daily_breakdown
from cashbook.ledger.writer import TransactionWriter, generate_reference

__all__ = [
    "BalanceCalculator",
    "ReportBuilder",
    "TransactionWriter",
    "build_daily_breakdown",
    "compute_balance",
    "generate_reference",
]
