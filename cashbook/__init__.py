"""
Cashbook - Source Package

A small cash ledger: receipts and payments against named parties,
a running balance, and daily/range reports.

DESIGN PRINCIPLES:
1. The transaction log is append-only
2. Balances are always derived, never stored
3. Fail early, fail visibly: bad input is rejected, not corrected
4. Storage layer is swappable
"""

__version__ = "1.0.0"
