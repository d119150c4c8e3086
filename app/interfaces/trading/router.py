"""
FastAPI router for the trade ledger and portfolio analytics.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.application.trading.delete_trade import DeleteTradeUseCase
from app.application.trading.dtos import (
    CreateTradeCommand,
    CreateTradesBatchCommand,
    DeleteTradeCommand,
    ExportTradesQuery,
    GetPortfolioAnalyticsQuery,
    ImportTradesCommand,
    ImportTradesResult,
    ListTradesQuery,
    TradeInput,
    UpdateTradeCommand,
)
from app.application.trading.export_trades import ExportTradesUseCase
from app.application.trading.get_portfolio_analytics import (
    GetPortfolioAnalyticsUseCase,
)
from app.application.trading.import_trades import ImportTradesUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.application.trading.record_trade import (
    CreateTradesBatchUseCase,
    CreateTradeUseCase,
)
from app.application.trading.trade_csv import export_timestamp
from app.application.trading.update_trade import UpdateTradeUseCase
from app.core.config import settings
from app.domain.trading.entities import Platform, Trade, TradeStatus
from app.domain.trading.errors import InvalidQueryError
from app.interfaces.trading.dependencies import (
    get_create_trade_use_case,
    get_create_trades_batch_use_case,
    get_delete_trade_use_case,
    get_export_trades_use_case,
    get_import_trades_use_case,
    get_list_trades_use_case,
    get_owner_id,
    get_portfolio_analytics_use_case,
    get_update_trade_use_case,
)
from app.interfaces.trading.schemas import (
    AnalyticsResponse,
    BestTradeItem,
    ErrorResponse,
    PopularSubjectItem,
    TradeBatchRequest,
    TradeBatchResponse,
    TradeCreateRequest,
    TradeItem,
    TradeListResponse,
    TradeUpdateRequest,
)
from app.shared.security.rate_limiting import limiter

router = APIRouter(prefix="/trades", tags=["trades"])

# Query values accepted for sort_by, in addition to the snake_case names
SORT_FIELD_ALIASES = {
    "tradeDate": "trade_date",
    "createdAt": "created_at",
    "subjectName": "subject_name",
    "buyPrice": "buy_price",
    "sellPrice": "sell_price",
}


def _to_trade_input(request: TradeCreateRequest) -> TradeInput:
    return TradeInput(
        subject_name=request.subject_name,
        buy_price=request.buy_price,
        sell_price=request.sell_price,
        quantity=request.quantity,
        subject_version=request.subject_version,
        subject_rating=request.subject_rating,
        platform=request.platform,
        status=request.status,
        trade_date=request.trade_date,
        tag=request.tag,
        notes=request.notes,
    )


def _to_trade_item(trade: Trade) -> TradeItem:
    return TradeItem(
        id=trade.id,
        subject_name=trade.subject_name,
        subject_version=trade.subject_version,
        subject_rating=trade.subject_rating,
        platform=trade.platform,
        buy_price=trade.buy_price,
        sell_price=trade.sell_price,
        quantity=trade.quantity,
        profit=trade.profit,
        tax=trade.tax,
        roi=trade.roi,
        status=trade.status,
        tag=trade.tag,
        notes=trade.notes,
        trade_date=trade.trade_date,
        created_at=trade.created_at,
    )


def _to_batch_response(result: ImportTradesResult) -> TradeBatchResponse:
    return TradeBatchResponse(
        count=result.count, trades=[_to_trade_item(t) for t in result.trades]
    )


@router.get(
    "",
    response_model=TradeListResponse,
    responses={422: {"model": ErrorResponse}},
    summary="List trades",
    description="Filtered, sorted and paginated listing of the caller's trades.",
)
async def list_trades(
    tag: Optional[str] = Query(default=None),
    platform: Optional[Platform] = Query(default=None),
    trade_status: Optional[TradeStatus] = Query(default=None, alias="status"),
    sort_by: str = Query(default="trade_date"),
    sort_order: str = Query(default="desc"),
    limit: int = Query(default=50),
    offset: int = Query(default=0),
    owner_id: str = Depends(get_owner_id),
    use_case: ListTradesUseCase = Depends(get_list_trades_use_case),
) -> TradeListResponse:
    """List the caller's trades."""
    page = await use_case.execute(
        ListTradesQuery(
            owner_id=owner_id,
            tag=tag,
            platform=platform,
            status=trade_status,
            sort_by=SORT_FIELD_ALIASES.get(sort_by, sort_by),
            sort_order=sort_order.lower(),
            limit=limit,
            offset=offset,
        )
    )
    return TradeListResponse(
        trades=[_to_trade_item(t) for t in page.trades],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.post(
    "",
    response_model=TradeItem,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Record a trade",
    description="Record a trade; profit, tax and ROI are derived from the prices.",
)
async def create_trade(
    request: TradeCreateRequest,
    owner_id: str = Depends(get_owner_id),
    use_case: CreateTradeUseCase = Depends(get_create_trade_use_case),
) -> TradeItem:
    """Record a single trade."""
    trade = await use_case.execute(
        CreateTradeCommand(owner_id=owner_id, trade=_to_trade_input(request))
    )
    return _to_trade_item(trade)


@router.post(
    "/batch",
    response_model=TradeBatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Record several trades",
)
@limiter.limit(settings.rate_limit_heavy)
async def create_trades_batch(
    request: Request,
    body: TradeBatchRequest,
    owner_id: str = Depends(get_owner_id),
    use_case: CreateTradesBatchUseCase = Depends(get_create_trades_batch_use_case),
) -> TradeBatchResponse:
    """Record up to the configured maximum of trades in one call."""
    result = await use_case.execute(
        CreateTradesBatchCommand(
            owner_id=owner_id,
            trades=[_to_trade_input(t) for t in body.trades],
        )
    )
    return _to_batch_response(result)


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Portfolio analytics",
    description="Profit, win rate, ROI, risk and popularity statistics.",
)
async def get_analytics(
    owner_id: str = Depends(get_owner_id),
    use_case: GetPortfolioAnalyticsUseCase = Depends(get_portfolio_analytics_use_case),
) -> AnalyticsResponse:
    """Aggregate the caller's whole ledger."""
    result = await use_case.execute(GetPortfolioAnalyticsQuery(owner_id=owner_id))
    best = result.best_trade
    return AnalyticsResponse(
        total_profit=result.total_profit,
        total_trades=result.total_trades,
        active_trades=result.active_trades,
        win_rate=result.win_rate,
        avg_roi=result.avg_roi,
        sharpe_ratio=result.sharpe_ratio,
        max_drawdown=result.max_drawdown,
        best_trade=(
            BestTradeItem(
                trade_id=best.trade_id,
                subject_name=best.subject_name,
                profit=best.profit,
                roi=best.roi,
            )
            if best is not None
            else None
        ),
        popular_subjects=[
            PopularSubjectItem(name=p.name, count=p.count)
            for p in result.popular_subjects
        ],
    )


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
    summary="Export trades as CSV",
)
async def export_trades(
    owner_id: str = Depends(get_owner_id),
    use_case: ExportTradesUseCase = Depends(get_export_trades_use_case),
) -> Response:
    """Download the caller's ledger as CSV."""
    csv_text = await use_case.execute(ExportTradesQuery(owner_id=owner_id))
    filename = f"trades_{export_timestamp()}.csv"
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=TradeBatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Import trades from CSV",
    description="Body is CSV text with a header row; derived columns are recomputed.",
)
@limiter.limit(settings.rate_limit_heavy)
async def import_trades(
    request: Request,
    owner_id: str = Depends(get_owner_id),
    use_case: ImportTradesUseCase = Depends(get_import_trades_use_case),
) -> TradeBatchResponse:
    """Record every row of an uploaded CSV."""
    body = await request.body()
    try:
        csv_text = body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidQueryError("csv", "must be UTF-8 text") from exc
    result = await use_case.execute(
        ImportTradesCommand(owner_id=owner_id, csv_text=csv_text)
    )
    return _to_batch_response(result)


@router.put(
    "/{trade_id}",
    response_model=TradeItem,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Update a trade",
    description="Partial update; derived fields are recomputed.",
)
async def update_trade(
    trade_id: UUID,
    request: TradeUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    use_case: UpdateTradeUseCase = Depends(get_update_trade_use_case),
) -> TradeItem:
    """Apply the supplied fields to one of the caller's trades."""
    trade = await use_case.execute(
        UpdateTradeCommand(
            owner_id=owner_id,
            trade_id=trade_id,
            changes=request.model_dump(exclude_unset=True),
        )
    )
    return _to_trade_item(trade)


@router.delete(
    "/{trade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a trade",
)
async def delete_trade(
    trade_id: UUID,
    owner_id: str = Depends(get_owner_id),
    use_case: DeleteTradeUseCase = Depends(get_delete_trade_use_case),
) -> Response:
    """Remove one of the caller's trades."""
    await use_case.execute(DeleteTradeCommand(owner_id=owner_id, trade_id=trade_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
