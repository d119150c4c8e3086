"""
Use case: Portfolio performance analytics for one owner.

Input: GetPortfolioAnalyticsQuery (owner_id)
Output: AnalyticsResult
Side effects: Populates the owner's entry in the result cache.
Failure cases: UpstreamUnavailableError.
"""

import logging
from typing import Optional

from app.application.trading.dtos import GetPortfolioAnalyticsQuery
from app.domain.trading.entities import AnalyticsResult, TradeFilters, TradeSort
from app.domain.trading.portfolio_analytics import PortfolioAnalyticsService
from app.domain.trading.ports import TradeLedger
from app.shared.cache import ResultCache, build_cache_key

logger = logging.getLogger(__name__)


def analytics_cache_key(owner_id: str) -> str:
    """Cache slot of an owner's analytics; mutations invalidate it."""
    return build_cache_key("analytics", owner=owner_id)


def invalidate_owner_analytics(cache: Optional[ResultCache], owner_id: str) -> None:
    """Drop the owner's cached analytics after a ledger mutation."""
    if cache is not None:
        cache.invalidate(analytics_cache_key(owner_id))


class GetPortfolioAnalyticsUseCase:
    """Fetches an owner's full ledger and aggregates it.

    Results are cached per owner until the TTL elapses or the owner's
    ledger changes.
    """

    def __init__(
        self,
        ledger: TradeLedger,
        cache: ResultCache,
        analytics: Optional[PortfolioAnalyticsService] = None,
    ) -> None:
        self._ledger = ledger
        self._cache = cache
        self._analytics = analytics or PortfolioAnalyticsService()

    async def execute(self, query: GetPortfolioAnalyticsQuery) -> AnalyticsResult:
        """Run the portfolio analytics use case.

        Args:
            query: Owner whose ledger is analyzed.

        Returns:
            Aggregate statistics; zeroed when the ledger is empty.
        """
        logger.info("Computing portfolio analytics for owner=%s", query.owner_id)

        async def compute() -> AnalyticsResult:
            page = await self._ledger.list_by_owner(
                query.owner_id,
                TradeFilters(),
                TradeSort(field="trade_date", descending=False),
            )
            return self._analytics.aggregate(page.trades)

        return await self._cache.get_or_compute(
            analytics_cache_key(query.owner_id), compute
        )
