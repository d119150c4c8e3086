"""
Use case: Delete a trade.

Input: DeleteTradeCommand (owner_id, trade_id)
Output: None
Side effects: Removes the trade from the ledger; invalidates the owner's analytics.
Failure cases: TradeNotFoundError, UpstreamUnavailableError.
"""

import logging
from typing import Optional

from app.application.trading.dtos import DeleteTradeCommand
from app.application.trading.get_portfolio_analytics import invalidate_owner_analytics
from app.domain.trading.ports import TradeLedger
from app.shared.cache import ResultCache

logger = logging.getLogger(__name__)


class DeleteTradeUseCase:
    """Removes one of the owner's trades."""

    def __init__(self, ledger: TradeLedger, cache: Optional[ResultCache] = None) -> None:
        self._ledger = ledger
        self._cache = cache

    async def execute(self, command: DeleteTradeCommand) -> None:
        await self._ledger.delete(command.trade_id, command.owner_id)
        invalidate_owner_analytics(self._cache, command.owner_id)
        logger.info("Deleted trade id=%s owner=%s", command.trade_id, command.owner_id)
