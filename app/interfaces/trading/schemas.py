"""
Pydantic schemas for trading API request/response validation.

These schemas enforce input validation and define the API contract.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.trading.entities import Platform, TradeStatus, TrendDirection, TrendWindow
from app.domain.trading.trade_metrics import MAX_PRICE, MAX_QUANTITY

NAME_MAX_LEN = 200
TAG_MAX_LEN = 100
NOTES_MAX_LEN = 2000


class HealthResponse(BaseModel):
    """Response schema for the health endpoint."""

    status: str
    version: str


class ErrorResponse(BaseModel):
    """Uniform error body returned by every error handler."""

    error: str
    detail: Optional[str] = None


# ------------------------------------------------------------------
# Trade ledger schemas
# ------------------------------------------------------------------


class TradeCreateRequest(BaseModel):
    """Request schema for recording a trade.

    Attributes:
        subject_name: Card (player) name.
        buy_price: Unit purchase price, strictly positive, at most MAX_PRICE.
        sell_price: Unit sale price; omit while the trade is open.
        quantity: Units traded (>= 1).
        status: Explicit status; derived from sell_price when omitted.
        trade_date: Defaults to now (UTC).
    """

    subject_name: str = Field(..., min_length=1, max_length=NAME_MAX_LEN)
    buy_price: Decimal = Field(
        ...,
        gt=0,
        le=MAX_PRICE,
        allow_inf_nan=False,
        description="Unit purchase price",
    )
    sell_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        le=MAX_PRICE,
        allow_inf_nan=False,
        description="Unit sale price",
    )
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)
    subject_version: Optional[str] = Field(default=None, max_length=100)
    subject_rating: Optional[int] = Field(default=None, ge=0, le=99)
    platform: Platform = Platform.PS
    status: Optional[TradeStatus] = None
    trade_date: Optional[datetime] = None
    tag: Optional[str] = Field(default=None, max_length=TAG_MAX_LEN)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LEN)


class TradeBatchRequest(BaseModel):
    """Request schema for recording several trades at once."""

    trades: list[TradeCreateRequest] = Field(..., min_length=1)


class TradeUpdateRequest(BaseModel):
    """Request schema for a partial trade update.

    Only the fields present in the body are changed. Sending
    ``sell_price: null`` re-opens the trade.
    """

    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    buy_price: Optional[Decimal] = Field(
        default=None, gt=0, le=MAX_PRICE, allow_inf_nan=False
    )
    sell_price: Optional[Decimal] = Field(
        default=None, ge=0, le=MAX_PRICE, allow_inf_nan=False
    )
    quantity: Optional[int] = Field(default=None, ge=1, le=MAX_QUANTITY)
    subject_version: Optional[str] = Field(default=None, max_length=100)
    subject_rating: Optional[int] = Field(default=None, ge=0, le=99)
    platform: Optional[Platform] = None
    status: Optional[TradeStatus] = None
    trade_date: Optional[datetime] = None
    tag: Optional[str] = Field(default=None, max_length=TAG_MAX_LEN)
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LEN)


class TradeItem(BaseModel):
    """A recorded trade with its derived metrics."""

    id: UUID
    subject_name: str
    subject_version: Optional[str]
    subject_rating: Optional[int]
    platform: Platform
    buy_price: Decimal
    sell_price: Optional[Decimal]
    quantity: int
    profit: Optional[Decimal]
    tax: Optional[Decimal]
    roi: Optional[Decimal]
    status: TradeStatus
    tag: Optional[str]
    notes: Optional[str]
    trade_date: datetime
    created_at: Optional[datetime]


class TradeListResponse(BaseModel):
    """Response schema for the ledger listing."""

    trades: list[TradeItem]
    total: int
    limit: int
    offset: int


class TradeBatchResponse(BaseModel):
    """Response schema for batch create and CSV import."""

    count: int
    trades: list[TradeItem]


class BestTradeItem(BaseModel):
    """The single most profitable completed trade."""

    trade_id: UUID
    subject_name: str
    profit: Decimal
    roi: Optional[Decimal]


class PopularSubjectItem(BaseModel):
    """A card and how many completed trades it appears in."""

    name: str
    count: int


class AnalyticsResponse(BaseModel):
    """Response schema for portfolio analytics."""

    total_profit: Decimal
    total_trades: int
    active_trades: int
    win_rate: Decimal
    avg_roi: Decimal
    sharpe_ratio: Decimal
    max_drawdown: Decimal
    best_trade: Optional[BestTradeItem]
    popular_subjects: list[PopularSubjectItem]


# ------------------------------------------------------------------
# Market trend schemas
# ------------------------------------------------------------------


class TrendingCardItem(BaseModel):
    """A card ranked by its percent change over the window."""

    item_id: str
    name: str
    rating: Optional[int]
    position: Optional[str]
    club: Optional[str]
    league: Optional[str]
    nation: Optional[str]
    card_type: Optional[str]
    platform: Optional[Platform]
    current_price: Decimal
    reference_price: Decimal
    percent_change: Decimal
    change_amount: Decimal
    volume: Optional[int]
    updated_at: Optional[datetime]


class TrendingCardsResponse(BaseModel):
    """Response schema for the trending cards ranking."""

    window: TrendWindow
    direction: TrendDirection
    count: int
    cards: list[TrendingCardItem]
    cached_at: datetime


class MarketSummaryResponse(BaseModel):
    """Response schema for the market summary."""

    window: TrendWindow
    total: int
    trending: int
    falling: int
    stable: int
    rise_threshold: Decimal
    fall_threshold: Decimal
    cached_at: datetime


class MarketMoversResponse(BaseModel):
    """Response schema for top gainers and losers."""

    window: TrendWindow
    gainers: list[TrendingCardItem]
    losers: list[TrendingCardItem]
    cached_at: datetime
