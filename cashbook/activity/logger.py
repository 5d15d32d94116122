"""
Activity Logger

DESIGN DECISION: Every significant ledger action is logged as a
structured event. This provides:
1. Traceability of accepted and refused writes
2. Debugging capability for report discrepancies
3. A single place where log formatting is decided

Events go to the structured log only; nothing here is persisted.
"""

import logging
from decimal import Decimal
from datetime import date

import structlog

from cashbook.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivitySeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root handler at `level`.

    structlog renders the JSON line; stdlib only has to print the message.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("cashbook").setLevel(level)


class ActivityLogger:
    """
    Central activity logging service.

    Each log_* helper builds an ActivityEvent and emits it at the
    event's own severity.
    """

    def __init__(self, logger_name: str = "cashbook.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> None:
        """Emit an event to the structured log."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("ledger_activity", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("ledger_activity", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("ledger_activity", **log_dict)
        else:
            self._logger.info("ledger_activity", **log_dict)

    def log_transaction_recorded(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        reference_number: str,
        balance_after: Decimal,
    ) -> None:
        """Log a committed receipt or payment."""
        self.log(ActivityEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            reference_number=reference_number,
            balance_after=balance_after,
        ))

    def log_payment_rejected(
        self,
        amount: Decimal,
        current_balance: Decimal,
    ) -> None:
        """Log a payment refused for insufficient balance."""
        self.log(ActivityEventBuilder.payment_rejected(
            amount=amount,
            current_balance=current_balance,
        ))

    def log_validation_failed(
        self,
        operation: str,
        field: str,
        message: str,
    ) -> None:
        self.log(ActivityEventBuilder.validation_failed(
            operation=operation,
            field=field,
            message=message,
        ))

    def log_initial_balance_updated(
        self,
        initial_balance: Decimal,
        current_balance: Decimal,
    ) -> None:
        self.log(ActivityEventBuilder.initial_balance_updated(
            initial_balance=initial_balance,
            current_balance=current_balance,
        ))

    def log_report_generated(
        self,
        report_type: str,
        start_date: date,
        end_date: date,
        transaction_count: int,
    ) -> None:
        self.log(ActivityEventBuilder.report_generated(
            report_type=report_type,
            start_date=start_date,
            end_date=end_date,
            transaction_count=transaction_count,
        ))

    def log_store_error(
        self,
        operation: str,
        error_message: str,
    ) -> None:
        """Log a persistence failure before it propagates."""
        self.log(ActivityEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
        ))
