"""
Use case: List an owner's trades.

Input: ListTradesQuery (filters, sort, pagination)
Output: TradePage
Side effects: None (read-only query).
Failure cases: InvalidQueryError, UpstreamUnavailableError.
"""

import logging

from app.application.trading.dtos import ListTradesQuery
from app.domain.trading.entities import PageRequest, TradeFilters, TradePage, TradeSort
from app.domain.trading.errors import InvalidQueryError
from app.domain.trading.ports import TradeLedger

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset(
    {
        "trade_date",
        "created_at",
        "subject_name",
        "buy_price",
        "sell_price",
        "quantity",
        "profit",
        "roi",
    }
)
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 200


class ListTradesUseCase:
    """Read-only listing of the owner's ledger."""

    def __init__(self, ledger: TradeLedger) -> None:
        self._ledger = ledger

    async def execute(self, query: ListTradesQuery) -> TradePage:
        """Run the list trades use case.

        Args:
            query: Owner, filters, sort and page window.

        Returns:
            The requested page and the total match count.

        Raises:
            InvalidQueryError: On an unknown sort field or order, or an
                out-of-range page window.
        """
        if query.sort_by not in SORTABLE_FIELDS:
            raise InvalidQueryError("sort_by", f"unsupported field {query.sort_by}")
        if query.sort_order not in SORT_ORDERS:
            raise InvalidQueryError("sort_order", "must be asc or desc")
        if not 1 <= query.limit <= MAX_PAGE_SIZE:
            raise InvalidQueryError("limit", f"must be between 1 and {MAX_PAGE_SIZE}")
        if query.offset < 0:
            raise InvalidQueryError("offset", "must not be negative")

        logger.info(
            "Listing trades owner=%s sort=%s %s limit=%d offset=%d",
            query.owner_id,
            query.sort_by,
            query.sort_order,
            query.limit,
            query.offset,
        )

        return await self._ledger.list_by_owner(
            query.owner_id,
            TradeFilters(tag=query.tag, platform=query.platform, status=query.status),
            TradeSort(field=query.sort_by, descending=query.sort_order == "desc"),
            PageRequest(limit=query.limit, offset=query.offset),
        )
