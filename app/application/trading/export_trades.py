"""
Use case: Export an owner's trades as CSV text.

Input: ExportTradesQuery (owner_id)
Output: str (CSV with header)
Side effects: None (read-only query).
Failure cases: UpstreamUnavailableError.
"""

import logging

from app.application.trading.dtos import ExportTradesQuery
from app.application.trading.trade_csv import trades_to_csv
from app.domain.trading.entities import TradeFilters, TradeSort
from app.domain.trading.ports import TradeLedger

logger = logging.getLogger(__name__)


class ExportTradesUseCase:
    """Serializes the full ledger, newest trade first."""

    def __init__(self, ledger: TradeLedger) -> None:
        self._ledger = ledger

    async def execute(self, query: ExportTradesQuery) -> str:
        page = await self._ledger.list_by_owner(
            query.owner_id,
            TradeFilters(),
            TradeSort(field="trade_date", descending=True),
        )
        logger.info(
            "Exporting %d trades for owner=%s", len(page.trades), query.owner_id
        )
        return trades_to_csv(page.trades)
