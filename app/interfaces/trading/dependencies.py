"""
Dependency injection for the trading bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the trading context.
"""

from functools import lru_cache

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.application.trading.delete_trade import DeleteTradeUseCase
from app.application.trading.export_trades import ExportTradesUseCase
from app.application.trading.get_market_movers import GetMarketMoversUseCase
from app.application.trading.get_market_summary import GetMarketSummaryUseCase
from app.application.trading.get_portfolio_analytics import (
    GetPortfolioAnalyticsUseCase,
)
from app.application.trading.get_trending_cards import GetTrendingCardsUseCase
from app.application.trading.import_trades import ImportTradesUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.application.trading.record_trade import (
    CreateTradesBatchUseCase,
    CreateTradeUseCase,
)
from app.application.trading.update_trade import UpdateTradeUseCase
from app.core.config import settings
from app.domain.trading.portfolio_analytics import PortfolioAnalyticsService
from app.domain.trading.ports import MarketSnapshotRepository, TradeLedger
from app.infrastructure.trading.market_snapshot_repository import (
    SqlMarketSnapshotRepository,
)
from app.infrastructure.trading.trade_ledger_repository import SqlTradeLedger
from app.shared.cache import ResultCache

OWNER_HEADER = "X-Owner-Id"


@lru_cache(maxsize=1)
def get_db_engine() -> AsyncEngine:
    """Build the process-wide async engine from application settings."""
    return create_async_engine(
        settings.database_url, echo=settings.db_echo, pool_pre_ping=True
    )


def get_result_cache(request: Request) -> ResultCache:
    """Return the application's shared result cache."""
    return request.app.state.result_cache


def get_owner_id(
    owner_id: str = Header(..., alias=OWNER_HEADER, min_length=1, max_length=64),
) -> str:
    """Owner identity forwarded by the upstream auth layer."""
    return owner_id.strip()


def get_trade_ledger() -> TradeLedger:
    return SqlTradeLedger(engine=get_db_engine())


def get_snapshot_repository() -> MarketSnapshotRepository:
    return SqlMarketSnapshotRepository(engine=get_db_engine())


# ------------------------------------------------------------------
# Trade ledger use cases
# ------------------------------------------------------------------


def get_create_trade_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
    cache: ResultCache = Depends(get_result_cache),
) -> CreateTradeUseCase:
    """Build CreateTradeUseCase with its infrastructure dependencies."""
    return CreateTradeUseCase(ledger=ledger, cache=cache)


def get_create_trades_batch_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
    cache: ResultCache = Depends(get_result_cache),
) -> CreateTradesBatchUseCase:
    """Build CreateTradesBatchUseCase with its infrastructure dependencies."""
    return CreateTradesBatchUseCase(
        ledger=ledger, cache=cache, max_batch=settings.max_batch_trades
    )


def get_update_trade_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
    cache: ResultCache = Depends(get_result_cache),
) -> UpdateTradeUseCase:
    """Build UpdateTradeUseCase with its infrastructure dependencies."""
    return UpdateTradeUseCase(ledger=ledger, cache=cache)


def get_delete_trade_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
    cache: ResultCache = Depends(get_result_cache),
) -> DeleteTradeUseCase:
    """Build DeleteTradeUseCase with its infrastructure dependencies."""
    return DeleteTradeUseCase(ledger=ledger, cache=cache)


def get_list_trades_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
) -> ListTradesUseCase:
    """Build ListTradesUseCase with its infrastructure dependencies."""
    return ListTradesUseCase(ledger=ledger)


def get_import_trades_use_case(
    batch: CreateTradesBatchUseCase = Depends(get_create_trades_batch_use_case),
) -> ImportTradesUseCase:
    """Build ImportTradesUseCase on top of the batch create use case."""
    return ImportTradesUseCase(batch_use_case=batch)


def get_export_trades_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
) -> ExportTradesUseCase:
    """Build ExportTradesUseCase with its infrastructure dependencies."""
    return ExportTradesUseCase(ledger=ledger)


def get_portfolio_analytics_use_case(
    ledger: TradeLedger = Depends(get_trade_ledger),
    cache: ResultCache = Depends(get_result_cache),
) -> GetPortfolioAnalyticsUseCase:
    """Build GetPortfolioAnalyticsUseCase with its infrastructure dependencies."""
    return GetPortfolioAnalyticsUseCase(
        ledger=ledger,
        cache=cache,
        analytics=PortfolioAnalyticsService(
            popular_limit=settings.popular_subjects_limit
        ),
    )


# ------------------------------------------------------------------
# Market trend use cases
# ------------------------------------------------------------------


def get_trending_cards_use_case(
    repo: MarketSnapshotRepository = Depends(get_snapshot_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> GetTrendingCardsUseCase:
    """Build GetTrendingCardsUseCase with its infrastructure dependencies."""
    return GetTrendingCardsUseCase(snapshot_repo=repo, cache=cache)


def get_market_summary_use_case(
    repo: MarketSnapshotRepository = Depends(get_snapshot_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> GetMarketSummaryUseCase:
    """Build GetMarketSummaryUseCase with its infrastructure dependencies."""
    return GetMarketSummaryUseCase(snapshot_repo=repo, cache=cache)


def get_market_movers_use_case(
    repo: MarketSnapshotRepository = Depends(get_snapshot_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> GetMarketMoversUseCase:
    """Build GetMarketMoversUseCase with its infrastructure dependencies."""
    return GetMarketMoversUseCase(snapshot_repo=repo, cache=cache)
