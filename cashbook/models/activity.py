"""
Activity Models for Cashbook

Every significant ledger action produces an ActivityEvent which is
written to the structured log. Events are not persisted: the ledger
itself is the record of what happened, the log explains why a request
was accepted or refused.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events the ledger reports."""
    # Writes
    TRANSACTION_RECORDED = "transaction_recorded"
    PAYMENT_REJECTED = "payment_rejected"
    VALIDATION_FAILED = "validation_failed"
    INITIAL_BALANCE_UPDATED = "initial_balance_updated"

    # Reads
    REPORT_GENERATED = "report_generated"

    # System events
    STORE_ERROR = "store_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single ledger activity event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'settings', 'report')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_recorded(txn_id, "receipt", ...)
        event = ActivityEventBuilder.payment_rejected(amount, balance)
    """

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        reference_number: str,
        balance_after: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type.capitalize()} recorded: {reference_number}",
            details={
                "type": transaction_type,
                "amount": str(amount),
                "reference_number": reference_number,
                "balance_after": str(balance_after),
            },
        )

    @staticmethod
    def payment_rejected(
        amount: Decimal,
        current_balance: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.PAYMENT_REJECTED,
            severity=ActivitySeverity.WARNING,
            entity_type="transaction",
            description=f"Payment of {amount} exceeds balance {current_balance}",
            details={
                "amount": str(amount),
                "current_balance": str(current_balance),
            },
        )

    @staticmethod
    def validation_failed(
        operation: str,
        field: str,
        message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            description=f"Invalid {field} for {operation}",
            details={
                "operation": operation,
                "field": field,
            },
            error_message=message,
        )

    @staticmethod
    def initial_balance_updated(
        initial_balance: Decimal,
        current_balance: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.INITIAL_BALANCE_UPDATED,
            entity_type="settings",
            description=f"Initial balance set to {initial_balance}",
            details={
                "initial_balance": str(initial_balance),
                "current_balance": str(current_balance),
            },
        )

    @staticmethod
    def report_generated(
        report_type: str,
        start_date: date,
        end_date: date,
        transaction_count: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REPORT_GENERATED,
            severity=ActivitySeverity.DEBUG,
            entity_type="report",
            description=f"{report_type.capitalize()} report with {transaction_count} transactions",
            details={
                "report_type": report_type,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORE_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"Store failure during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
