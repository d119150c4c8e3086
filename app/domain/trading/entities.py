"""
Domain entities for the trading bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID


class Platform(Enum):
    """Console/PC marketplace a card is traded on."""

    PS = "PS"
    XBOX = "XBOX"
    PC = "PC"


class TradeStatus(Enum):
    """Lifecycle state of a trade."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class TrendWindow(Enum):
    """Lookback window used to pick the reference price."""

    H6 = "6h"
    H12 = "12h"
    H24 = "24h"


class TrendDirection(Enum):
    """Direction filter for trending queries."""

    RISING = "rising"
    FALLING = "falling"
    ALL = "all"


@dataclass(frozen=True)
class TradeMetrics:
    """Derived financials of a single trade.

    All three values are None while the trade is open.
    """

    profit: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    roi: Optional[Decimal] = None


@dataclass(frozen=True)
class TradeDraft:
    """Writable state of a trade, as handed to the ledger.

    Derived fields (profit, tax, roi) must only be filled in by
    ``apply_trade_metrics``.
    """

    subject_name: str
    buy_price: Decimal
    quantity: int = 1
    sell_price: Optional[Decimal] = None
    subject_version: Optional[str] = None
    subject_rating: Optional[int] = None
    platform: Platform = Platform.PS
    status: TradeStatus = TradeStatus.ACTIVE
    trade_date: Optional[datetime] = None
    tag: Optional[str] = None
    notes: Optional[str] = None
    profit: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    roi: Optional[Decimal] = None


@dataclass(frozen=True)
class Trade:
    """A persisted virtual-card trade owned by exactly one user."""

    id: UUID
    owner_id: str
    subject_name: str
    buy_price: Decimal
    quantity: int
    trade_date: datetime
    sell_price: Optional[Decimal] = None
    subject_version: Optional[str] = None
    subject_rating: Optional[int] = None
    platform: Platform = Platform.PS
    status: TradeStatus = TradeStatus.ACTIVE
    tag: Optional[str] = None
    notes: Optional[str] = None
    profit: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    roi: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.sell_price is not None

    def to_draft(self) -> TradeDraft:
        """Return the writable state of this trade."""
        return TradeDraft(
            subject_name=self.subject_name,
            buy_price=self.buy_price,
            quantity=self.quantity,
            sell_price=self.sell_price,
            subject_version=self.subject_version,
            subject_rating=self.subject_rating,
            platform=self.platform,
            status=self.status,
            trade_date=self.trade_date,
            tag=self.tag,
            notes=self.notes,
            profit=self.profit,
            tax=self.tax,
            roi=self.roi,
        )


@dataclass(frozen=True)
class TradeFilters:
    """Optional equality filters for ledger listings."""

    tag: Optional[str] = None
    platform: Optional[Platform] = None
    status: Optional[TradeStatus] = None


@dataclass(frozen=True)
class TradeSort:
    """Sort field and direction for ledger listings."""

    field: str = "trade_date"
    descending: bool = True


@dataclass(frozen=True)
class PageRequest:
    """Offset pagination window."""

    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class TradePage:
    """One page of an owner's ledger plus the unpaginated total."""

    trades: list[Trade]
    total: int
    limit: int
    offset: int


@dataclass(frozen=True)
class MarketSnapshot:
    """Latest price observation of a tradable card.

    Read-only to this service; refreshed by an external ingester.
    """

    item_id: str
    name: str
    current_price: Optional[Decimal]
    price_24h_ago: Optional[Decimal] = None
    price_12h_ago: Optional[Decimal] = None
    price_6h_ago: Optional[Decimal] = None
    price_7d_ago: Optional[Decimal] = None
    price_30d_ago: Optional[Decimal] = None
    volume: Optional[int] = None
    timestamp: Optional[datetime] = None
    rating: Optional[int] = None
    position: Optional[str] = None
    club: Optional[str] = None
    league: Optional[str] = None
    nation: Optional[str] = None
    card_type: Optional[str] = None
    platform: Optional[Platform] = None

    def reference_price(self, window: TrendWindow) -> Optional[Decimal]:
        """Return the price observed at the start of ``window``."""
        if window is TrendWindow.H6:
            return self.price_6h_ago
        if window is TrendWindow.H12:
            return self.price_12h_ago
        return self.price_24h_ago


@dataclass(frozen=True)
class RankedCard:
    """A card with its price movement over a window."""

    snapshot: MarketSnapshot
    reference_price: Decimal
    percent_change: Decimal
    change_amount: Decimal


@dataclass(frozen=True)
class MarketMovers:
    """Independently ranked top gainers and losers."""

    gainers: list[RankedCard]
    losers: list[RankedCard]


@dataclass(frozen=True)
class MarketSummary:
    """Partition of eligible cards into trending/falling/stable."""

    total: int
    trending: int
    falling: int
    stable: int
    rise_threshold: Decimal
    fall_threshold: Decimal


@dataclass(frozen=True)
class BestTrade:
    """The most profitable completed trade."""

    trade_id: UUID
    subject_name: str
    profit: Decimal
    roi: Optional[Decimal]


@dataclass(frozen=True)
class PopularSubject:
    """A card name and how many completed trades involved it."""

    name: str
    count: int


@dataclass(frozen=True)
class AnalyticsResult:
    """Portfolio-level performance statistics for one owner."""

    total_profit: Decimal = Decimal("0.00")
    total_trades: int = 0
    active_trades: int = 0
    win_rate: Decimal = Decimal("0.00")
    avg_roi: Decimal = Decimal("0.00")
    sharpe_ratio: Decimal = Decimal("0.00")
    max_drawdown: Decimal = Decimal("0.00")
    best_trade: Optional[BestTrade] = None
    popular_subjects: list[PopularSubject] = field(default_factory=list)
