"""
Transaction Writer

The only way a transaction enters the ledger.

GUARANTEES:
- Input is validated before the store is touched
- A payment never takes the balance below zero: the balance check and
  the insert run inside one store.atomic() scope, so a concurrent
  payment cannot slip in between them
- A rejected request leaves nothing behind
- The balance returned is read after the insert, never computed from
  a value seen before it
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from cashbook.activity import ActivityLogger
from cashbook.exceptions import InsufficientBalanceError, ValidationError
from cashbook.ledger.balance import BalanceCalculator
from cashbook.models.ledger import (
    RecordedTransaction,
    Transaction,
    TransactionType,
)
from cashbook.services.storage import LedgerStoreInterface
from cashbook.validation import (
    AmountInput,
    optional_text,
    parse_amount,
    parse_transaction_type,
    require_text,
)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_reference(txn_type: TransactionType, created_at: datetime) -> str:
    """REC-1704067199000 style reference from the type and epoch millis."""
    return f"{txn_type.reference_prefix}-{int(created_at.timestamp() * 1000)}"


class TransactionWriter:
    """Validates and commits receipts and payments."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        calculator: Optional[BalanceCalculator] = None,
        clock: Optional[Clock] = None,
        operator_name: str = "operator",
        currency_code: str = "AED",
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._calculator = calculator or BalanceCalculator(store)
        self._clock = clock or utc_now
        self._operator_name = operator_name
        self._currency_code = currency_code
        self._activity_logger = activity_logger

    async def create_transaction(
        self,
        type: Any,
        amount: AmountInput,
        address_id: Optional[str] = None,
        address_name: Optional[str] = None,
        description: Optional[str] = None,
        reference_number: Optional[str] = None,
    ) -> RecordedTransaction:
        """
        Record a receipt or payment.

        Args:
            type: 'receipt' or 'payment'
            amount: Positive amount, at most two decimal places
            address_id: Address book reference (optional)
            address_name: Party name, required even when address_id is set
            description: Free text (optional)
            reference_number: Generated as REC-/PAY-<epoch millis> if absent

        Returns:
            The persisted transaction and the balance after it

        Raises:
            ValidationError: If any input is invalid
            InsufficientBalanceError: If a payment exceeds the balance
            StoreError: If the store fails
        """
        txn_type = parse_transaction_type(type)
        value = parse_amount(amount)
        name = require_text(address_name, "address_name")
        party_id = optional_text(address_id, "address_id")
        note = optional_text(description, "description")
        reference = optional_text(reference_number, "reference_number")

        async with self._store.atomic():
            if txn_type == TransactionType.PAYMENT:
                balance = await self._calculator.current_balance()
                if value > balance:
                    if self._activity_logger:
                        self._activity_logger.log_payment_rejected(
                            amount=value,
                            current_balance=balance,
                        )
                    raise InsufficientBalanceError(
                        current_balance=balance,
                        amount=value,
                        currency=self._currency_code,
                    )

            created_at = self._clock()
            try:
                txn = Transaction(
                    type=txn_type,
                    amount=value,
                    address_id=party_id,
                    address_name=name,
                    description=note,
                    reference_number=reference or generate_reference(txn_type, created_at),
                    created_at=created_at,
                    created_by=self._operator_name,
                )
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic(e) from e

            await self._store.insert_transaction(txn)

        current_balance = await self._calculator.current_balance()

        if self._activity_logger:
            self._activity_logger.log_transaction_recorded(
                transaction_id=txn.id,
                transaction_type=txn.type.value,
                amount=txn.amount,
                reference_number=txn.reference_number,
                balance_after=current_balance,
            )

        return RecordedTransaction(
            transaction=txn,
            current_balance=current_balance,
        )
