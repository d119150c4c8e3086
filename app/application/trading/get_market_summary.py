"""
Use case: Summarize the market into trending/falling/stable counts.

Input: GetMarketSummaryQuery (window, rise_threshold, fall_threshold)
Output: MarketSummaryResult
Side effects: Populates the result cache.
Failure cases: InvalidQueryError, UpstreamUnavailableError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.application.trading.dtos import GetMarketSummaryQuery, MarketSummaryResult
from app.domain.trading.ports import MarketSnapshotRepository
from app.domain.trading.trending import TrendingRankingService
from app.shared.cache import ResultCache, build_cache_key

logger = logging.getLogger(__name__)


class GetMarketSummaryUseCase:
    """Serves the market summary from cache, computing it on a miss."""

    def __init__(
        self,
        snapshot_repo: MarketSnapshotRepository,
        cache: ResultCache,
        ranking: Optional[TrendingRankingService] = None,
    ) -> None:
        self._snapshot_repo = snapshot_repo
        self._cache = cache
        self._ranking = ranking or TrendingRankingService()

    async def execute(self, query: GetMarketSummaryQuery) -> MarketSummaryResult:
        """Run the market summary use case.

        Raises:
            InvalidQueryError: If a threshold is negative.
        """
        key = build_cache_key(
            "summary",
            window=query.window,
            rise=query.rise_threshold,
            fall=query.fall_threshold,
        )

        async def compute() -> MarketSummaryResult:
            logger.info(
                "Summarizing market window=%s rise=%s fall=%s",
                query.window.value,
                query.rise_threshold,
                query.fall_threshold,
            )
            snapshots = await self._snapshot_repo.list_eligible(query.window)
            summary = self._ranking.summarize(
                snapshots, query.window, query.rise_threshold, query.fall_threshold
            )
            return MarketSummaryResult(
                window=query.window,
                summary=summary,
                cached_at=datetime.now(timezone.utc),
            )

        return await self._cache.get_or_compute(key, compute)
