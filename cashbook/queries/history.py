"""
Transaction History

Paginated browsing of the ledger, newest first, and lookup by id.

GUARANTEES:
- Only returns rows that exist in the store
- A missing id is a NotFoundError, never None
- Pagination totals come from the same filter as the page
"""

import math
from datetime import date
from typing import Any, Optional

from cashbook.exceptions import NotFoundError, ValidationError
from cashbook.models.ledger import Transaction, TransactionFilter
from cashbook.models.reports import Pagination, TransactionPage
from cashbook.services.storage import LedgerStoreInterface
from cashbook.validation import optional_text, parse_transaction_type


class TransactionHistory:
    """Read-only queries over the transaction log."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        default_page_size: int = 50,
        max_page_size: int = 500,
    ):
        self._store = store
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    async def list_transactions(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        type: Any = None,
        date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        address_id: Optional[str] = None,
    ) -> TransactionPage:
        """
        One page of transactions matching the filters, newest first.

        Args:
            page: 1-based page number
            limit: Page size (defaults to the configured page size)
            type: 'receipt' or 'payment'
            date: Only this calendar day
            start_date: On or after this day
            end_date: On or before this day
            address_id: Only this address book entry

        Raises:
            ValidationError: If page or limit is out of range, or type is unknown
        """
        if limit is None:
            limit = self._default_page_size
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("page", "must be a positive integer")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self._max_page_size:
            raise ValidationError("limit", f"must be between 1 and {self._max_page_size}")

        filters = TransactionFilter(
            type=parse_transaction_type(type) if type is not None else None,
            on_date=date,
            date_from=start_date,
            date_to=end_date,
            address_id=optional_text(address_id, "address_id"),
        )

        total = await self._store.count_transactions(filters)
        transactions = await self._store.list_transactions(
            filters,
            newest_first=True,
            limit=limit,
            offset=(page - 1) * limit,
        )

        return TransactionPage(
            transactions=transactions,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        )

    async def get_transaction(self, transaction_id: str) -> Transaction:
        """
        Look up a single transaction.

        Raises:
            NotFoundError: If no transaction has this id
        """
        txn = await self._store.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError("transaction", transaction_id)
        return txn
