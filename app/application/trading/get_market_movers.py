"""
Use case: Biggest gainers and losers.

Input: GetMarketMoversQuery (limit, window)
Output: MarketMoversResult
Side effects: Populates the result cache.
Failure cases: InvalidQueryError, UpstreamUnavailableError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.application.trading.dtos import GetMarketMoversQuery, MarketMoversResult
from app.domain.trading.ports import MarketSnapshotRepository
from app.domain.trading.trending import TrendingRankingService
from app.shared.cache import ResultCache, build_cache_key

logger = logging.getLogger(__name__)


class GetMarketMoversUseCase:
    """Serves top gainers/losers from cache, computing them on a miss."""

    def __init__(
        self,
        snapshot_repo: MarketSnapshotRepository,
        cache: ResultCache,
        ranking: Optional[TrendingRankingService] = None,
    ) -> None:
        self._snapshot_repo = snapshot_repo
        self._cache = cache
        self._ranking = ranking or TrendingRankingService()

    async def execute(self, query: GetMarketMoversQuery) -> MarketMoversResult:
        key = build_cache_key("movers", window=query.window, limit=query.limit)

        async def compute() -> MarketMoversResult:
            logger.info(
                "Ranking market movers window=%s limit=%d",
                query.window.value,
                query.limit,
            )
            snapshots = await self._snapshot_repo.list_eligible(query.window)
            movers = self._ranking.movers(snapshots, query.window, query.limit)
            return MarketMoversResult(
                window=query.window,
                movers=movers,
                cached_at=datetime.now(timezone.utc),
            )

        return await self._cache.get_or_compute(key, compute)
