"""
Input Validation

Every value entering the ledger from a caller passes through one of
these functions first. They raise ValidationError naming the field and
never silently fix a value: an amount with three decimal places is
rejected, not rounded.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from cashbook.exceptions import ValidationError
from cashbook.models.ledger import CENT, MAX_AMOUNT, TransactionType


AmountInput = Union[Decimal, int, float, str]


def parse_amount(
    value: Any,
    field: str = "amount",
    allow_zero: bool = False,
) -> Decimal:
    """
    Convert a caller-supplied amount to a two-place Decimal.

    Accepts Decimal, int, float and numeric strings. Floats are
    converted through their shortest repr, so 0.1 becomes 0.10.

    Raises:
        ValidationError: If the value is missing, not a finite number,
            not positive (or negative when allow_zero), larger than
            MAX_AMOUNT, or has more than two decimal places
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(field, "must be a number")

    try:
        if isinstance(value, float):
            amount = Decimal(repr(value))
        elif isinstance(value, (Decimal, int)):
            amount = Decimal(value)
        elif isinstance(value, str):
            amount = Decimal(value.strip())
        else:
            raise ValidationError(field, "must be a number")
    except InvalidOperation:
        raise ValidationError(field, f"not a number: {value!r}")

    if not amount.is_finite():
        raise ValidationError(field, "must be a finite number")

    if allow_zero:
        if amount < 0:
            raise ValidationError(field, "cannot be negative")
    elif amount <= 0:
        raise ValidationError(field, "must be greater than 0")

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(field, "is too large")
    if quantized != amount:
        raise ValidationError(field, "at most two decimal places allowed")
    if quantized > MAX_AMOUNT:
        raise ValidationError(field, "is too large")

    return quantized


def parse_transaction_type(value: Any, field: str = "type") -> TransactionType:
    """Accept exactly 'receipt' or 'payment' (or the enum itself)."""
    if isinstance(value, TransactionType):
        return value
    if isinstance(value, str):
        try:
            return TransactionType(value)
        except ValueError:
            pass
    raise ValidationError(field, "must be 'receipt' or 'payment'")


def require_text(value: Any, field: str) -> str:
    """A non-empty string after trimming whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    return value.strip()


def optional_text(value: Any, field: str) -> Optional[str]:
    """Trimmed string, or None for missing/blank input."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "must be text")
    return value.strip() or None


def parse_iso_date(value: Any, field: str) -> date:
    """
    Parse a YYYY-MM-DD string (date objects pass through).

    Raises:
        ValidationError: If the value is missing or malformed
    """
    if value is None or value == "":
        raise ValidationError(field, "is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(field, f"expected a date in YYYY-MM-DD format, got {value!r}")
