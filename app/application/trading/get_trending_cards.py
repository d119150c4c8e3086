"""
Use case: Rank trending cards over a lookback window.

Input: GetTrendingCardsQuery (window, direction, limit)
Output: TrendingCardsResult
Side effects: Populates the result cache.
Failure cases: InvalidQueryError, UpstreamUnavailableError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.application.trading.dtos import GetTrendingCardsQuery, TrendingCardsResult
from app.domain.trading.ports import MarketSnapshotRepository
from app.domain.trading.trending import TrendingRankingService
from app.shared.cache import ResultCache, build_cache_key

logger = logging.getLogger(__name__)


class GetTrendingCardsUseCase:
    """Serves the trending ranking from cache, computing it on a miss."""

    def __init__(
        self,
        snapshot_repo: MarketSnapshotRepository,
        cache: ResultCache,
        ranking: Optional[TrendingRankingService] = None,
    ) -> None:
        self._snapshot_repo = snapshot_repo
        self._cache = cache
        self._ranking = ranking or TrendingRankingService()

    async def execute(self, query: GetTrendingCardsQuery) -> TrendingCardsResult:
        """Run the trending cards use case.

        Args:
            query: Window, direction and limit.

        Returns:
            Cards ordered by absolute percent change.

        Raises:
            InvalidQueryError: If the limit is below 1.
        """
        key = build_cache_key(
            "trending",
            window=query.window,
            direction=query.direction,
            limit=query.limit,
        )

        async def compute() -> TrendingCardsResult:
            logger.info(
                "Ranking trending cards window=%s direction=%s limit=%d",
                query.window.value,
                query.direction.value,
                query.limit,
            )
            snapshots = await self._snapshot_repo.list_eligible(query.window)
            cards = self._ranking.rank(
                snapshots, query.window, query.direction, query.limit
            )
            return TrendingCardsResult(
                window=query.window,
                direction=query.direction,
                cards=cards,
                cached_at=datetime.now(timezone.utc),
            )

        return await self._cache.get_or_compute(key, compute)
