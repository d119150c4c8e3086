"""
Use cases: Record one trade, or a batch of trades.

Input: CreateTradeCommand / CreateTradesBatchCommand
Output: Trade / ImportTradesResult
Side effects: Writes to the trade ledger; invalidates the owner's analytics.
Failure cases: InvalidTradeError, InvalidQueryError (oversize batch),
    UpstreamUnavailableError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.application.trading.dtos import (
    CreateTradeCommand,
    CreateTradesBatchCommand,
    ImportTradesResult,
    TradeInput,
)
from app.application.trading.get_portfolio_analytics import invalidate_owner_analytics
from app.domain.trading.entities import Trade, TradeDraft
from app.domain.trading.errors import InvalidQueryError
from app.domain.trading.ports import TradeLedger
from app.domain.trading.trade_metrics import (
    apply_trade_metrics,
    resolve_status,
    to_decimal,
    validate_trade_inputs,
)
from app.shared.cache import ResultCache

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH = 100


def build_draft(trade: TradeInput) -> TradeDraft:
    """Validate raw trade input and derive status and metrics.

    Raises:
        InvalidTradeError: If the input cannot be priced.
    """
    validate_trade_inputs(
        trade.subject_name, trade.buy_price, trade.sell_price, trade.quantity
    )
    sell_price = to_decimal(trade.sell_price) if trade.sell_price is not None else None
    draft = TradeDraft(
        subject_name=trade.subject_name.strip(),
        buy_price=to_decimal(trade.buy_price),
        sell_price=sell_price,
        quantity=trade.quantity,
        subject_version=trade.subject_version,
        subject_rating=trade.subject_rating,
        platform=trade.platform,
        status=resolve_status(sell_price, trade.status),
        trade_date=trade.trade_date or datetime.now(timezone.utc),
        tag=trade.tag,
        notes=trade.notes,
    )
    return apply_trade_metrics(draft)


class CreateTradeUseCase:
    """Records a single trade with its derived metrics."""

    def __init__(self, ledger: TradeLedger, cache: Optional[ResultCache] = None) -> None:
        self._ledger = ledger
        self._cache = cache

    async def execute(self, command: CreateTradeCommand) -> Trade:
        """Run the create trade use case.

        Args:
            command: Owner and raw trade fields.

        Returns:
            The persisted trade.

        Raises:
            InvalidTradeError: If the trade input is invalid.
        """
        draft = build_draft(command.trade)
        trade = await self._ledger.create(command.owner_id, draft)
        invalidate_owner_analytics(self._cache, command.owner_id)
        logger.info("Recorded trade id=%s owner=%s", trade.id, command.owner_id)
        return trade


class CreateTradesBatchUseCase:
    """Records up to ``max_batch`` trades.

    Every row is validated before the first write, so an invalid row
    rejects the whole batch.
    """

    def __init__(
        self,
        ledger: TradeLedger,
        cache: Optional[ResultCache] = None,
        max_batch: int = DEFAULT_MAX_BATCH,
    ) -> None:
        self._ledger = ledger
        self._cache = cache
        self._max_batch = max_batch

    async def execute(self, command: CreateTradesBatchCommand) -> ImportTradesResult:
        """Run the batch create use case.

        Raises:
            InvalidQueryError: If the batch is empty or too large.
            InvalidTradeError: If any row is invalid.
        """
        if not command.trades:
            raise InvalidQueryError("trades", "at least one trade is required")
        if len(command.trades) > self._max_batch:
            raise InvalidQueryError(
                "trades", f"at most {self._max_batch} trades per batch"
            )

        drafts = [build_draft(trade) for trade in command.trades]

        created = []
        try:
            for draft in drafts:
                created.append(await self._ledger.create(command.owner_id, draft))
        finally:
            if created:
                invalidate_owner_analytics(self._cache, command.owner_id)

        logger.info(
            "Recorded %d trades for owner=%s", len(created), command.owner_id
        )
        return ImportTradesResult(count=len(created), trades=created)
