"""
Port interfaces (ABCs) for the trading bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.

Both ports are I/O bound and therefore asynchronous. They are the only
suspension points of the analytics core.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.domain.trading.entities import (
    MarketSnapshot,
    PageRequest,
    Trade,
    TradeDraft,
    TradeFilters,
    TradePage,
    TradeSort,
    TrendWindow,
)


class TradeLedger(ABC):
    """Port for the owner-scoped trade store.

    Implementations persist the derived fields exactly as given in the
    draft; they never compute metrics themselves.
    """

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        filters: TradeFilters,
        sort: TradeSort,
        page: Optional[PageRequest] = None,
    ) -> TradePage:
        """Return the owner's trades matching ``filters``.

        Args:
            owner_id: Owner whose ledger is read.
            filters: Equality filters on tag, platform, status.
            sort: Sort field and direction.
            page: Pagination window. None returns every matching trade.

        Returns:
            The requested page and the total number of matching trades.
        """
        raise NotImplementedError

    @abstractmethod
    async def get(self, trade_id: UUID, owner_id: str) -> Optional[Trade]:
        """Return a single trade, or None if the owner has no such trade."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, owner_id: str, draft: TradeDraft) -> Trade:
        """Persist a new trade and return it with its identity."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, trade_id: UUID, owner_id: str, draft: TradeDraft) -> Trade:
        """Replace the writable state of a trade.

        Raises:
            TradeNotFoundError: If the owner has no such trade.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, trade_id: UUID, owner_id: str) -> None:
        """Remove a trade.

        Raises:
            TradeNotFoundError: If the owner has no such trade.
        """
        raise NotImplementedError


class MarketSnapshotRepository(ABC):
    """Port for read-only card price snapshots."""

    @abstractmethod
    async def list_eligible(self, window: TrendWindow) -> list[MarketSnapshot]:
        """Return snapshots with a current price and a positive reference
        price for ``window``."""
        raise NotImplementedError
