"""
Core Ledger Models for Cashbook

These models define the strict schemas for everything the ledger stores:
1. Transactions (append-only receipts and payments)
2. The singleton settings record holding the initial balance
3. Filters and aggregates exchanged with the store

DESIGN DECISION: Amounts are Decimal with at most two decimal places.
Floats never enter the ledger, so balances add up exactly.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


ZERO = Decimal("0.00")
CENT = Decimal("0.01")
# DECIMAL(15,2): thirteen integer digits
MAX_AMOUNT = Decimal("9999999999999.99")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a cash movement.

    A receipt increases the balance, a payment decreases it.
    """
    RECEIPT = "receipt"
    PAYMENT = "payment"

    @property
    def reference_prefix(self) -> str:
        """Prefix for generated reference numbers (REC / PAY)."""
        return self.value[:3].upper()


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single recorded cash movement.

    CRITICAL: Transactions are immutable once written.
    There is no update or delete path anywhere in the system.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Opaque unique identifier"
    )
    type: TransactionType
    amount: Annotated[
        Decimal,
        Field(gt=0, le=MAX_AMOUNT, decimal_places=2, description="Amount (always positive)")
    ]

    # Party
    address_id: Optional[str] = Field(
        default=None,
        description="Address book reference, if the party came from there"
    )
    address_name: str = Field(
        ...,
        min_length=1,
        description="Party name captured at write time"
    )

    description: Optional[str] = None
    reference_number: str = Field(
        ...,
        min_length=1,
        description="Human reference (generated when not supplied)"
    )

    created_at: datetime = Field(
        ...,
        description="When the transaction was recorded (ledger timezone)"
    )
    created_by: str = Field(
        default="operator",
        description="Operator identity"
    )

    @property
    def created_on(self) -> date:
        """Calendar date used for every date comparison."""
        return self.created_at.date()

    @property
    def created_at_utc(self) -> datetime:
        """The UTC instant of created_at; the ordering key in every store."""
        return self.created_at.astimezone(timezone.utc)


class RecordedTransaction(BaseModel):
    """A freshly written transaction and the balance read back after it."""

    transaction: Transaction
    current_balance: Decimal


# =============================================================================
# SETTINGS RECORD
# =============================================================================

class LedgerSettings(BaseModel):
    """
    The singleton settings record.

    Created once by the store with initial_balance = 0.
    Passed explicitly to balance computations, never read as ambient state.
    """

    initial_balance: Annotated[
        Decimal,
        Field(ge=0, le=MAX_AMOUNT, decimal_places=2, description="Balance before the first transaction")
    ] = ZERO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SettingsSnapshot(BaseModel):
    """Settings together with the current balance, as returned to callers."""

    settings: LedgerSettings
    current_balance: Decimal


# =============================================================================
# STORE QUERY MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    Filter understood by every store implementation.

    All fields are optional and combined with AND.
    Dates compare by calendar date: date_from/date_to are inclusive,
    before is exclusive.
    """
    model_config = ConfigDict(frozen=True)

    type: Optional[TransactionType] = None
    on_date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    before: Optional[date] = None
    address_id: Optional[str] = None

    def matches(self, txn: Transaction) -> bool:
        """Evaluate the filter in Python (used by the in-memory store)."""
        day = txn.created_on
        if self.type and txn.type != self.type:
            return False
        if self.on_date and day != self.on_date:
            return False
        if self.date_from and day < self.date_from:
            return False
        if self.date_to and day > self.date_to:
            return False
        if self.before and day >= self.before:
            return False
        if self.address_id and txn.address_id != self.address_id:
            return False
        return True


class LedgerTotals(BaseModel):
    """Receipts and payments summed over a filter."""

    total_receipts: Decimal = ZERO
    total_payments: Decimal = ZERO
    transaction_count: int = Field(default=0, ge=0)

    @property
    def net(self) -> Decimal:
        return self.total_receipts - self.total_payments

    @model_validator(mode='after')
    def validate_totals(self) -> 'LedgerTotals':
        if self.total_receipts < 0 or self.total_payments < 0:
            raise ValueError("Totals cannot be negative")
        return self
