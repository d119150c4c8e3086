"""
FastAPI router for market trend queries.

Rankings are served from the shared result cache; each response carries
the time its payload was computed.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from app.application.trading.dtos import (
    GetMarketMoversQuery,
    GetMarketSummaryQuery,
    GetTrendingCardsQuery,
)
from app.application.trading.get_market_movers import GetMarketMoversUseCase
from app.application.trading.get_market_summary import GetMarketSummaryUseCase
from app.application.trading.get_trending_cards import GetTrendingCardsUseCase
from app.domain.trading.entities import RankedCard, TrendDirection, TrendWindow
from app.domain.trading.errors import InvalidQueryError
from app.interfaces.trading.dependencies import (
    get_market_movers_use_case,
    get_market_summary_use_case,
    get_trending_cards_use_case,
)
from app.interfaces.trading.schemas import (
    ErrorResponse,
    MarketMoversResponse,
    MarketSummaryResponse,
    TrendingCardItem,
    TrendingCardsResponse,
)

router = APIRouter(prefix="/trending", tags=["trending"])

MAX_TRENDING_LIMIT = 100


def _parse_window(value: str) -> TrendWindow:
    try:
        return TrendWindow(value.strip().lower())
    except ValueError:
        allowed = ", ".join(w.value for w in TrendWindow)
        raise InvalidQueryError("window", f"must be one of {allowed}") from None


def _parse_direction(value: str) -> TrendDirection:
    try:
        return TrendDirection(value.strip().lower())
    except ValueError:
        allowed = ", ".join(d.value for d in TrendDirection)
        raise InvalidQueryError("direction", f"must be one of {allowed}") from None


def _check_limit(limit: int) -> int:
    if not 1 <= limit <= MAX_TRENDING_LIMIT:
        raise InvalidQueryError(
            "limit", f"must be between 1 and {MAX_TRENDING_LIMIT}"
        )
    return limit


def _to_card_item(card: RankedCard) -> TrendingCardItem:
    snapshot = card.snapshot
    return TrendingCardItem(
        item_id=snapshot.item_id,
        name=snapshot.name,
        rating=snapshot.rating,
        position=snapshot.position,
        club=snapshot.club,
        league=snapshot.league,
        nation=snapshot.nation,
        card_type=snapshot.card_type,
        platform=snapshot.platform,
        current_price=snapshot.current_price,
        reference_price=card.reference_price,
        percent_change=card.percent_change,
        change_amount=card.change_amount,
        volume=snapshot.volume,
        updated_at=snapshot.timestamp,
    )


@router.get(
    "/cards",
    response_model=TrendingCardsResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Trending cards",
    description="Cards ranked by absolute percent price change over the window.",
)
async def get_trending_cards(
    window: str = Query(default="24h", description="6h, 12h or 24h"),
    direction: str = Query(default="all", description="rising, falling or all"),
    limit: int = Query(default=20),
    use_case: GetTrendingCardsUseCase = Depends(get_trending_cards_use_case),
) -> TrendingCardsResponse:
    """Rank cards by price movement."""
    result = await use_case.execute(
        GetTrendingCardsQuery(
            window=_parse_window(window),
            direction=_parse_direction(direction),
            limit=_check_limit(limit),
        )
    )
    return TrendingCardsResponse(
        window=result.window,
        direction=result.direction,
        count=result.count,
        cards=[_to_card_item(c) for c in result.cards],
        cached_at=result.cached_at,
    )


@router.get(
    "/summary",
    response_model=MarketSummaryResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Market summary",
    description="Counts of trending, falling and stable cards for the thresholds.",
)
async def get_market_summary(
    window: str = Query(default="24h"),
    rise_threshold: Decimal = Query(default=Decimal("5")),
    fall_threshold: Decimal = Query(default=Decimal("5")),
    use_case: GetMarketSummaryUseCase = Depends(get_market_summary_use_case),
) -> MarketSummaryResponse:
    """Classify the market into trending, falling and stable cards."""
    result = await use_case.execute(
        GetMarketSummaryQuery(
            window=_parse_window(window),
            rise_threshold=rise_threshold,
            fall_threshold=fall_threshold,
        )
    )
    summary = result.summary
    return MarketSummaryResponse(
        window=result.window,
        total=summary.total,
        trending=summary.trending,
        falling=summary.falling,
        stable=summary.stable,
        rise_threshold=summary.rise_threshold,
        fall_threshold=summary.fall_threshold,
        cached_at=result.cached_at,
    )


@router.get(
    "/movers",
    response_model=MarketMoversResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Top gainers and losers",
)
async def get_market_movers(
    limit: int = Query(default=10),
    window: str = Query(default="24h"),
    use_case: GetMarketMoversUseCase = Depends(get_market_movers_use_case),
) -> MarketMoversResponse:
    """Largest rises and largest drops, each limited independently."""
    result = await use_case.execute(
        GetMarketMoversQuery(limit=_check_limit(limit), window=_parse_window(window))
    )
    return MarketMoversResponse(
        window=result.window,
        gainers=[_to_card_item(c) for c in result.movers.gainers],
        losers=[_to_card_item(c) for c in result.movers.losers],
        cached_at=result.cached_at,
    )
