"""
Use case: Partially update a trade.

Input: UpdateTradeCommand (owner_id, trade_id, changes)
Output: Trade
Side effects: Writes to the trade ledger; invalidates the owner's analytics.
Failure cases: TradeNotFoundError, InvalidTradeError, UpstreamUnavailableError.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from app.application.trading.dtos import UpdateTradeCommand
from app.application.trading.get_portfolio_analytics import invalidate_owner_analytics
from app.domain.trading.entities import Platform, Trade, TradeStatus
from app.domain.trading.errors import InvalidTradeError, TradeNotFoundError
from app.domain.trading.ports import TradeLedger
from app.domain.trading.trade_metrics import (
    apply_trade_metrics,
    resolve_status,
    to_decimal,
    validate_trade_inputs,
)
from app.shared.cache import ResultCache

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "subject_name",
        "subject_version",
        "subject_rating",
        "platform",
        "buy_price",
        "sell_price",
        "quantity",
        "status",
        "trade_date",
        "tag",
        "notes",
    }
)
PRICE_FIELDS = frozenset({"buy_price", "sell_price", "quantity"})
NON_CLEARABLE_FIELDS = ("platform", "status", "trade_date")


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in ("buy_price", "sell_price"):
        return to_decimal(value)
    if name == "platform":
        return Platform(value)
    if name == "status":
        return TradeStatus(value)
    return value


class UpdateTradeUseCase:
    """Applies a partial update and recomputes the derived fields.

    When a price or the quantity changes and no explicit status is
    given, the status is derived again from the sell price.
    """

    def __init__(self, ledger: TradeLedger, cache: Optional[ResultCache] = None) -> None:
        self._ledger = ledger
        self._cache = cache

    async def execute(self, command: UpdateTradeCommand) -> Trade:
        """Run the update trade use case.

        Args:
            command: Owner, trade id and the supplied fields.

        Returns:
            The updated trade.

        Raises:
            TradeNotFoundError: If the owner has no such trade.
            InvalidTradeError: On an unknown field or invalid resulting values.
        """
        unknown = sorted(set(command.changes) - UPDATABLE_FIELDS)
        if unknown:
            raise InvalidTradeError(unknown[0], "cannot be updated")

        try:
            changes = {
                name: _coerce(name, value) for name, value in command.changes.items()
            }
        except (ValueError, ArithmeticError) as exc:
            raise InvalidTradeError("changes", str(exc)) from exc

        for name in NON_CLEARABLE_FIELDS:
            if name in changes and changes[name] is None:
                del changes[name]

        existing = await self._ledger.get(command.trade_id, command.owner_id)
        if existing is None:
            raise TradeNotFoundError(str(command.trade_id))

        draft = replace(existing.to_draft(), **changes)
        validate_trade_inputs(
            draft.subject_name, draft.buy_price, draft.sell_price, draft.quantity
        )
        if PRICE_FIELDS & changes.keys() and "status" not in changes:
            draft = replace(draft, status=resolve_status(draft.sell_price))
        draft = apply_trade_metrics(draft)

        trade = await self._ledger.update(command.trade_id, command.owner_id, draft)
        invalidate_owner_analytics(self._cache, command.owner_id)
        logger.info(
            "Updated trade id=%s owner=%s fields=%s",
            command.trade_id,
            command.owner_id,
            ",".join(sorted(changes)),
        )
        return trade
