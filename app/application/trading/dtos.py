"""
Data Transfer Objects for the trading application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from app.domain.trading.entities import (
    MarketMovers,
    MarketSummary,
    Platform,
    RankedCard,
    Trade,
    TradeStatus,
    TrendDirection,
    TrendWindow,
)


@dataclass(frozen=True)
class TradeInput:
    """Raw fields of a trade to be recorded.

    Attributes:
        subject_name: Card (player) name.
        buy_price: Unit purchase price.
        sell_price: Unit sale price, None while the trade is open.
        quantity: Units traded.
        subject_version: Card version label.
        subject_rating: Card rating.
        platform: Marketplace platform.
        status: Explicit status; derived from sell_price when None.
        trade_date: When the trade happened; defaults to now.
        tag: Free-form grouping label.
        notes: Free text.
    """

    subject_name: str
    buy_price: Decimal
    sell_price: Optional[Decimal] = None
    quantity: int = 1
    subject_version: Optional[str] = None
    subject_rating: Optional[int] = None
    platform: Platform = Platform.PS
    status: Optional[TradeStatus] = None
    trade_date: Optional[datetime] = None
    tag: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CreateTradeCommand:
    """Input DTO for recording one trade."""

    owner_id: str
    trade: TradeInput


@dataclass(frozen=True)
class CreateTradesBatchCommand:
    """Input DTO for recording several trades at once."""

    owner_id: str
    trades: list[TradeInput]


@dataclass(frozen=True)
class UpdateTradeCommand:
    """Input DTO for a partial trade update.

    Attributes:
        owner_id: Owner of the trade.
        trade_id: Trade to update.
        changes: Only the fields the caller supplied. An explicit None
            (e.g. ``sell_price``) clears the field.
    """

    owner_id: str
    trade_id: UUID
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteTradeCommand:
    """Input DTO for deleting a trade."""

    owner_id: str
    trade_id: UUID


@dataclass(frozen=True)
class ListTradesQuery:
    """Input DTO for a filtered, sorted, paginated ledger listing."""

    owner_id: str
    tag: Optional[str] = None
    platform: Optional[Platform] = None
    status: Optional[TradeStatus] = None
    sort_by: str = "trade_date"
    sort_order: str = "desc"
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class GetPortfolioAnalyticsQuery:
    """Input DTO for an owner's portfolio analytics."""

    owner_id: str


@dataclass(frozen=True)
class ImportTradesCommand:
    """Input DTO for a CSV trade import."""

    owner_id: str
    csv_text: str


@dataclass(frozen=True)
class ImportTradesResult:
    """Output DTO for batch create and CSV import."""

    count: int
    trades: list[Trade]


@dataclass(frozen=True)
class ExportTradesQuery:
    """Input DTO for a CSV trade export."""

    owner_id: str


@dataclass(frozen=True)
class GetTrendingCardsQuery:
    """Input DTO for the trending cards ranking.

    Attributes:
        window: Lookback window.
        direction: rising, falling or all.
        limit: Maximum number of cards.
    """

    window: TrendWindow = TrendWindow.H24
    direction: TrendDirection = TrendDirection.ALL
    limit: int = 20


@dataclass(frozen=True)
class TrendingCardsResult:
    """Output DTO for the trending cards ranking."""

    window: TrendWindow
    direction: TrendDirection
    cards: list[RankedCard]
    cached_at: datetime

    @property
    def count(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class GetMarketSummaryQuery:
    """Input DTO for the market summary.

    Attributes:
        window: Lookback window.
        rise_threshold: Percent change at or above which a card is trending.
        fall_threshold: Percent drop at or beyond which a card is falling.
    """

    window: TrendWindow = TrendWindow.H24
    rise_threshold: Decimal = Decimal("5")
    fall_threshold: Decimal = Decimal("5")


@dataclass(frozen=True)
class MarketSummaryResult:
    """Output DTO for the market summary."""

    window: TrendWindow
    summary: MarketSummary
    cached_at: datetime


@dataclass(frozen=True)
class GetMarketMoversQuery:
    """Input DTO for the top gainers/losers query."""

    limit: int = 10
    window: TrendWindow = TrendWindow.H24


@dataclass(frozen=True)
class MarketMoversResult:
    """Output DTO for the top gainers/losers query."""

    window: TrendWindow
    movers: MarketMovers
    cached_at: datetime
