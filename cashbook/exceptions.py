"""
Ledger Exceptions

All ledger-level failures derive from LedgerError. Persistence failures
are StoreError (cashbook.services.storage) and are not wrapped here.
"""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as PydanticValidationError


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Malformed or missing input. Names the offending field."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    @classmethod
    def from_pydantic(cls, error: PydanticValidationError) -> "ValidationError":
        """Convert the first error of a pydantic ValidationError."""
        first = error.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "input"
        return cls(field, first.get("msg", "invalid value"))


class InsufficientBalanceError(LedgerError):
    """A payment larger than the current balance."""

    def __init__(
        self,
        current_balance: Decimal,
        amount: Optional[Decimal] = None,
        currency: str = "AED",
    ):
        self.current_balance = current_balance
        self.amount = amount
        super().__init__(
            f"Insufficient balance. Current balance: {current_balance:.2f} {currency}"
        )


class NotFoundError(LedgerError):
    """Lookup by id with no match."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")
