"""Transaction history queries package."""

from cashbook.queries.history import TransactionHistory

__all__ = ["TransactionHistory"]
