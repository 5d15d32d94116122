"""Input validation package."""

from cashbook.validation.validator import (
    AmountInput,
    optional_text,
    parse_amount,
    parse_iso_date,
    parse_transaction_type,
    require_text,
)

__all__ = [
    "AmountInput",
    "optional_text",
    "parse_amount",
    "parse_iso_date",
    "parse_transaction_type",
    "require_text",
]
